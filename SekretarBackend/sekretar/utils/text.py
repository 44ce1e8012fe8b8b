"""Text helpers for instructions, dictation and dates.

Small, dependency-free functions used by the orchestrator and the
external-call prompts.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

_MONTHS_GENITIVE = (
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
)


def is_blank(text: Optional[str]) -> bool:
    return not (text or "").strip()


def append_dictation(existing: Optional[str], transcript: str) -> str:
    """Append transcribed speech to an instruction, space-separated."""
    if is_blank(transcript):
        return existing or ""
    prefix = existing.strip() + " " if not is_blank(existing) else ""
    return prefix + transcript


def format_ru_long_date(d: date) -> str:
    """Render a date the way official letters print it: ``19 октября 2026 г.``"""
    return f"{d.day} {_MONTHS_GENITIVE[d.month - 1]} {d.year} г."


def format_ru_short_date(d: date) -> str:
    return d.strftime("%d.%m.%Y")
