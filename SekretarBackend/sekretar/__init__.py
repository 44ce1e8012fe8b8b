"""Flask app factory and blueprint registration.

Defines `create_app()` to initialize the Flask app, load configuration,
wire the archive, user directory and workspace registry, enable CORS,
and register route blueprints.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS

from sekretar.config import Config
from sekretar.errors import (
    ConflictError,
    DeviceAccessError,
    ExternalServiceError,
    InputValidationError,
    SekretarError,
    StorageError,
)
from sekretar.services.archive_service import ArchiveStore
from sekretar.services.directory_service import DirectoryStore
from sekretar.services.kv_store import KeyValueStore, store_from_config
from sekretar.services.llm_service import LLMService
from sekretar.services.workspace_service import WorkspaceRegistry
from sekretar.routes.archive import archive_bp
from sekretar.routes.auth import auth_bp
from sekretar.routes.export import export_bp
from sekretar.routes.users import users_bp
from sekretar.routes.workspaces import workspaces_bp

# Load .env for local dev if available
load_dotenv()

ERROR_STATUS = {
    InputValidationError: 400,
    DeviceAccessError: 409,
    ConflictError: 409,
    ExternalServiceError: 502,
    StorageError: 507,
}


def _status_for(err: SekretarError) -> int:
    for cls in type(err).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def create_app(
    cfg: Config = Config,
    store: Optional[KeyValueStore] = None,
    llm_factory: Optional[Callable[[], object]] = None,
) -> Flask:
    app = Flask(__name__)
    # Basic config
    app.config.from_object(cfg)
    logging.basicConfig(level=getattr(logging, str(cfg.LOG_LEVEL).upper(), logging.INFO))

    store = store or store_from_config(cfg)
    archive = ArchiveStore(store)
    app.extensions["sekretar"] = {
        "archive": archive,
        "directory": DirectoryStore(store),
        "workspaces": WorkspaceRegistry(archive, llm_factory or (lambda: LLMService(cfg)), cfg),
    }

    # Allow all origins for local development, including preflight for file upload
    CORS(
        app,
        resources={r"/*": {"origins": "*"}},
        supports_credentials=False,
        expose_headers=["Content-Disposition"],
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )

    # Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(archive_bp)
    app.register_blueprint(workspaces_bp)
    app.register_blueprint(export_bp)

    @app.errorhandler(SekretarError)
    def handle_sekretar_error(err: SekretarError):
        return jsonify({"error": str(err), "kind": type(err).__name__}), _status_for(err)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
