"""User admin routes: GET/POST /users, DELETE /users/<user_id>

All endpoints require HTTP Basic credentials of an ADMIN account and
return profiles only.
"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from sekretar.routes.auth import admin_required
from sekretar.schemas import NewUserAccount

users_bp = Blueprint("users", __name__)


def _resp_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _directory():
    return current_app.extensions["sekretar"]["directory"]


@users_bp.get("/users")
@admin_required
def list_users():
    users = _directory().list_all()
    return jsonify({"users": [u.to_profile().model_dump(mode="json") for u in users]})


@users_bp.post("/users")
@admin_required
def add_user():
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        account = NewUserAccount.model_validate(payload)
    except ValidationError:
        return _resp_error("Заполните обязательные поля")
    # ConflictError is mapped to 409 by the app error handler
    created = _directory().add(account)
    return jsonify(created.to_profile().model_dump(mode="json")), 201


@users_bp.delete("/users/<user_id>")
@admin_required
def delete_user(user_id: str):
    _directory().remove(user_id)
    return jsonify({"deleted": user_id})
