"""Configuration for environment variables and runtime knobs.

Provides a simple config object with data paths, model names and upload
limits. This keeps the rest of the codebase decoupled from direct env access.
"""

from __future__ import annotations

import os


class Config:
    # Base
    SEKRETAR_ENV = os.getenv("SEKRETAR_ENV", "dev")
    DATA_DIR = os.getenv("SEKRETAR_DATA_DIR", os.path.abspath(os.path.join(os.getcwd(), "data")))

    # Subdirs
    DB_DIR = os.path.join(DATA_DIR, "db")

    # "file" persists archive/users as JSON under DB_DIR, "memory" keeps them in-process
    STORE_BACKEND = os.getenv("STORE_BACKEND", "file")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Single credential for the Gemini API; resolved at call time by LLMService
    GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")

    # Models per external call (can override via env)
    DRAFT_MODEL = os.getenv("DRAFT_MODEL", "gemini-3-flash-preview")
    COMPLIANCE_MODEL = os.getenv("COMPLIANCE_MODEL", "gemini-3-pro-preview")
    TRANSCRIBE_MODEL = os.getenv("TRANSCRIBE_MODEL", "gemini-2.5-flash")

    DRAFT_TEMPERATURE = float(os.getenv("DRAFT_TEMPERATURE", "0.3"))
    COMPLIANCE_TEMPERATURE = float(os.getenv("COMPLIANCE_TEMPERATURE", "0.1"))
    TRANSCRIBE_TEMPERATURE = float(os.getenv("TRANSCRIBE_TEMPERATURE", "0"))

    # Upload limits and whitelist
    MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "10"))
    ALLOWED_MIME_PREFIXES = ("image/",)
    ALLOWED_MIME_TYPES = {"application/pdf"}

    # Browser recorders deliver webm/opus
    AUDIO_MIME_TYPE = os.getenv("AUDIO_MIME_TYPE", "audio/webm")

    # Abandoned workspaces are evicted after this much inactivity, or when the cap is hit
    WORKSPACE_IDLE_TTL_SECONDS = int(os.getenv("WORKSPACE_IDLE_TTL_SECONDS", "3600"))
    MAX_WORKSPACES = int(os.getenv("MAX_WORKSPACES", "100"))


def ensure_data_dirs(cfg: Config = Config) -> None:
    """Ensure required data directories exist."""
    for p in [cfg.DATA_DIR, cfg.DB_DIR]:
        os.makedirs(p, exist_ok=True)
