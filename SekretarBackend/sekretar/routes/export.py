"""Export route: POST /export

Renders a draft as an EDMS import package and returns it as a download.

Request JSON: { format, text, file_name? }
"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, Response, jsonify, request

from sekretar.services.export_service import DEFAULT_SOURCE_NAME, serialize

export_bp = Blueprint("export", __name__)


def _resp_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


@export_bp.route("/export", methods=["POST"])
def export():
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    text = payload.get("text")
    if not isinstance(text, str) or not text.strip():
        return _resp_error("Missing text to export.")
    package = serialize(payload.get("format"), text, payload.get("file_name") or DEFAULT_SOURCE_NAME)
    return Response(
        package.content,
        mimetype=package.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{package.filename}"'},
    )
