"""Auth routes: POST /auth/login

Checks credentials against the user directory and returns the profile
(never the credential). Also provides ``admin_required`` for routes that
take HTTP Basic credentials of an administrator.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Dict

from flask import Blueprint, current_app, g, jsonify, request

from sekretar.schemas import Role

auth_bp = Blueprint("auth", __name__)


def _resp_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _directory():
    return current_app.extensions["sekretar"]["directory"]


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        creds = request.authorization
        if creds is None or not creds.username:
            return _resp_error("Administrator credentials required.", 401)
        profile = _directory().authenticate(creds.username, creds.password or "", Role.ADMIN)
        if profile is None:
            return _resp_error("Неверный логин или пароль администратора.", 401)
        g.profile = profile
        return view(*args, **kwargs)

    return wrapper


@auth_bp.route("/auth/login", methods=["POST"])
def login():
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    username = payload.get("username") or ""
    password = payload.get("password") or ""
    role = payload.get("role")
    if not username or not password:
        return _resp_error("Missing username or password.")
    try:
        required = Role(role) if role else None
    except ValueError:
        return _resp_error(f"Unknown role: {role}")

    profile = _directory().authenticate(username, password, required)
    if profile is None:
        return _resp_error("Неверный логин или пароль.", 401)
    return jsonify(profile.model_dump(mode="json"))
