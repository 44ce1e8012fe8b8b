"""ComplianceReviewer: legal audit of the editable draft.

State machine ``INACTIVE -> ANALYZING -> REVIEWED``. A failed analysis,
an unparsable answer, or any change to the underlying draft returns the
reviewer to ``INACTIVE`` without a stored result. A change that arrives
while ``ANALYZING`` keeps the state until the call returns; that answer
is then discarded, so at most one analysis is ever in flight.

The analysis answer is validated by ``parse_analysis``, which returns a
``ParseSuccess`` or ``ParseFailure`` value instead of raising mid-parse.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from pydantic import ValidationError

from sekretar.errors import ExternalServiceError, InputValidationError, ParseError
from sekretar.schemas import LegalAnalysisResult, RiskLevel
from sekretar.utils.text import is_blank


class ReviewState(str, Enum):
    INACTIVE = "INACTIVE"
    ANALYZING = "ANALYZING"
    REVIEWED = "REVIEWED"


@dataclass(frozen=True)
class ParseSuccess:
    value: LegalAnalysisResult


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[ParseSuccess, ParseFailure]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_analysis(text: Optional[str]) -> ParseResult:
    """Strictly validate the compliance-call JSON against ``LegalAnalysisResult``."""
    if is_blank(text):
        return ParseFailure("empty response")
    body = _FENCE_RE.sub("", text.strip())
    # Models sometimes wrap the object in prose; keep the outermost {...}
    m = re.search(r"\{[\s\S]*\}", body)
    if m is None:
        return ParseFailure("no JSON object in response")
    try:
        return ParseSuccess(LegalAnalysisResult.model_validate_json(m.group(0), strict=True))
    except ValidationError as e:
        return ParseFailure(f"response does not match the analysis schema: {e.error_count()} error(s)")


AnalyzeFn = Callable[[str], Awaitable[str]]


class ComplianceReviewer:
    def __init__(self, analyze: AnalyzeFn):
        self._analyze = analyze
        self.state = ReviewState.INACTIVE
        self.result: Optional[LegalAnalysisResult] = None
        self._epoch = 0

    def invalidate(self) -> None:
        """Drop any stored result; called whenever the base draft changes."""
        self._epoch += 1
        self.result = None
        if self.state != ReviewState.ANALYZING:
            self.state = ReviewState.INACTIVE

    async def run_review(self, draft_text: str) -> LegalAnalysisResult:
        if is_blank(draft_text):
            raise InputValidationError("Нет текста для проверки.")
        if self.state == ReviewState.ANALYZING:
            raise InputValidationError("Проверка уже выполняется.")

        epoch = self._epoch
        self.result = None
        self.state = ReviewState.ANALYZING
        try:
            raw = await self._analyze(draft_text)
        except ExternalServiceError:
            self.state = ReviewState.INACTIVE
            raise
        except Exception as e:
            self.state = ReviewState.INACTIVE
            raise ExternalServiceError(f"Compliance analysis failed: {e}") from e

        if epoch != self._epoch:
            self.state = ReviewState.INACTIVE
            logging.info("Draft changed during compliance review; result discarded")
            raise InputValidationError("Текст изменился во время проверки; запустите проверку снова.")

        parsed = parse_analysis(raw)
        if isinstance(parsed, ParseFailure):
            self.state = ReviewState.INACTIVE
            logging.warning("Compliance analysis rejected: %s", parsed.reason)
            raise ParseError(f"Compliance analysis returned an invalid result: {parsed.reason}")

        self.result = parsed.value
        self.state = ReviewState.REVIEWED
        logging.info(
            "Compliance review done: risk=%s issues=%d",
            self.result.risk_level.value,
            len(self.result.issues),
        )
        return self.result

    @property
    def can_apply(self) -> bool:
        return (
            self.state == ReviewState.REVIEWED
            and self.result is not None
            and self.result.risk_level != RiskLevel.SAFE
        )

    def apply_revision(self) -> str:
        """Return the revised text that wholesale replaces the caller's draft."""
        if not self.can_apply:
            raise InputValidationError("Нет исправленной редакции для применения.")
        return self.result.revised_text
