"""Workspace routes: drive one drafting session across requests.

- POST   /workspaces                         -> create, returns snapshot
- GET    /workspaces/<id>                    -> snapshot
- DELETE /workspaces/<id>                    -> discard
- POST   /workspaces/<id>/file               -> multipart ``file`` (image/* or PDF)
- PUT    /workspaces/<id>/instruction        -> { text }
- POST   /workspaces/<id>/generate           -> run draft generation
- POST   /workspaces/<id>/reset              -> clear everything
- PUT    /workspaces/<id>/draft              -> { text } manual edit
- POST   /workspaces/<id>/dictation/start|chunk|stop
- POST   /workspaces/<id>/review             -> legal compliance review
- POST   /workspaces/<id>/review/apply       -> replace draft with revised text

Every response carries the workspace snapshot so clients can render state.
"""

from __future__ import annotations

import inspect
from functools import wraps
from typing import Any, Dict, Tuple

import fitz  # PyMuPDF
from flask import Blueprint, current_app, jsonify, request

from sekretar.schemas import SourceFile

workspaces_bp = Blueprint("workspaces", __name__)


def _resp_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _registry():
    return current_app.extensions["sekretar"]["workspaces"]


def with_workspace(view):
    """Resolve ``ws_id`` to its orchestrator; async views stay async for Flask."""
    if inspect.iscoroutinefunction(view):

        @wraps(view)
        async def async_wrapper(ws_id: str, *args, **kwargs):
            orch = _registry().get(ws_id)
            if orch is None:
                return _resp_error("workspace not found", 404)
            return await view(orch, *args, **kwargs)

        return async_wrapper

    @wraps(view)
    def wrapper(ws_id: str, *args, **kwargs):
        orch = _registry().get(ws_id)
        if orch is None:
            return _resp_error("workspace not found", 404)
        return view(orch, *args, **kwargs)

    return wrapper


def _text_payload() -> str:
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    text = payload.get("text", "")
    return text if isinstance(text, str) else ""


def _validate_pdf_not_encrypted(data: bytes) -> Tuple[bool, str]:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception:
        return False, "Не удалось открыть PDF документ."
    try:
        # older versions: check needs_pass; newer: is_encrypted
        needs = getattr(doc, "needs_pass", False) or getattr(doc, "is_encrypted", False)
        if needs:
            return False, "PDF защищён паролем."
        return True, ""
    finally:
        doc.close()


@workspaces_bp.post("/workspaces")
def create_workspace():
    orch = _registry().create()
    return jsonify(orch.snapshot()), 201


@workspaces_bp.get("/workspaces/<ws_id>")
@with_workspace
def get_workspace(orch):
    return jsonify(orch.snapshot())


@workspaces_bp.delete("/workspaces/<ws_id>")
def delete_workspace(ws_id: str):
    if not _registry().discard(ws_id):
        return _resp_error("workspace not found", 404)
    return jsonify({"deleted": ws_id})


@workspaces_bp.post("/workspaces/<ws_id>/file")
@with_workspace
def attach_file(orch):
    if "file" not in request.files:
        return _resp_error("No file part in the request.")
    f = request.files["file"]
    if not f or f.filename == "":
        return _resp_error("No file selected for upload.")

    data = f.read()
    source = SourceFile(file_name=f.filename, mime_type=f.mimetype or "application/octet-stream", data=data)
    if source.mime_type == "application/pdf" and data:
        ok, msg = _validate_pdf_not_encrypted(data)
        if not ok:
            return _resp_error(msg)

    orch.attach_file(source)
    return jsonify(orch.snapshot())


@workspaces_bp.delete("/workspaces/<ws_id>/file")
@with_workspace
def detach_file(orch):
    orch.detach_file()
    return jsonify(orch.snapshot())


@workspaces_bp.put("/workspaces/<ws_id>/instruction")
@with_workspace
def set_instruction(orch):
    orch.set_instruction(_text_payload())
    return jsonify(orch.snapshot())


@workspaces_bp.post("/workspaces/<ws_id>/generate")
@with_workspace
async def generate(orch):
    draft = await orch.generate()
    status = 200 if draft is not None else 502
    return jsonify(orch.snapshot()), status


@workspaces_bp.post("/workspaces/<ws_id>/reset")
@with_workspace
def reset(orch):
    orch.reset()
    return jsonify(orch.snapshot())


@workspaces_bp.put("/workspaces/<ws_id>/draft")
@with_workspace
def edit_draft(orch):
    orch.edit_draft(_text_payload())
    return jsonify(orch.snapshot())


@workspaces_bp.post("/workspaces/<ws_id>/dictation/start")
@with_workspace
def start_dictation(orch):
    orch.start_dictation()
    return jsonify(orch.snapshot())


@workspaces_bp.post("/workspaces/<ws_id>/dictation/chunk")
@with_workspace
def dictation_chunk(orch):
    orch.feed_dictation(request.get_data())
    return jsonify(orch.snapshot())


@workspaces_bp.post("/workspaces/<ws_id>/dictation/stop")
@with_workspace
async def stop_dictation(orch):
    await orch.stop_dictation()
    return jsonify(orch.snapshot())


@workspaces_bp.post("/workspaces/<ws_id>/review")
@with_workspace
async def review(orch):
    await orch.review()
    return jsonify(orch.snapshot())


@workspaces_bp.post("/workspaces/<ws_id>/review/apply")
@with_workspace
def apply_revision(orch):
    orch.apply_revision()
    return jsonify(orch.snapshot())
