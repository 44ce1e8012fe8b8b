"""Archive routes: GET /archive, GET/DELETE /archive/<item_id>

Lists archived drafts newest-first, optionally filtered with ``?q=``
(case-insensitive match on file name and instruction).
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from sekretar.services.archive_service import search_archive

archive_bp = Blueprint("archive", __name__)


def _archive():
    return current_app.extensions["sekretar"]["archive"]


@archive_bp.get("/archive")
def list_archive():
    items = search_archive(_archive().list(), request.args.get("q"))
    return jsonify({"items": [it.model_dump(mode="json", by_alias=True) for it in items]})


@archive_bp.get("/archive/<item_id>")
def get_archive_item(item_id: str):
    item = _archive().get(item_id)
    if item is None:
        return jsonify({"error": "archive item not found"}), 404
    return jsonify(item.model_dump(mode="json", by_alias=True))


@archive_bp.delete("/archive/<item_id>")
def delete_archive_item(item_id: str):
    _archive().remove(item_id)
    return jsonify({"deleted": item_id})
