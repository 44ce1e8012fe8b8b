import asyncio
import json

import pytest

from conftest import SAFE_ANALYSIS, WARNING_ANALYSIS, FakeLLM
from sekretar.errors import ExternalServiceError, InputValidationError, ParseError
from sekretar.schemas import RiskLevel, Severity
from sekretar.services.compliance_service import (
    ComplianceReviewer,
    ParseFailure,
    ParseSuccess,
    ReviewState,
    parse_analysis,
)


def test_parse_valid_analysis():
    parsed = parse_analysis(json.dumps(WARNING_ANALYSIS, ensure_ascii=False))

    assert isinstance(parsed, ParseSuccess)
    assert parsed.value.risk_level == RiskLevel.WARNING
    assert parsed.value.issues[0].severity == Severity.MEDIUM
    assert parsed.value.issues[0].citation == "ст. 12 59-ФЗ"
    assert parsed.value.issues[1].citation is None


def test_parse_accepts_fenced_json():
    raw = "```json\n" + json.dumps(SAFE_ANALYSIS) + "\n```"
    assert isinstance(parse_analysis(raw), ParseSuccess)


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "не JSON вовсе",
        "{broken",
        json.dumps({**WARNING_ANALYSIS, "riskLevel": "UNKNOWN"}),
        json.dumps({**WARNING_ANALYSIS, "hasRisks": "yes"}),
        json.dumps({k: v for k, v in WARNING_ANALYSIS.items() if k != "revisedText"}),
        json.dumps({**WARNING_ANALYSIS, "issues": [{"description": "x", "severity": "SEVERE"}]}),
    ],
)
def test_parse_rejects_non_conforming(raw):
    assert isinstance(parse_analysis(raw), ParseFailure)


def test_review_then_apply_replaces_draft_wholesale():
    reviewer = ComplianceReviewer(FakeLLM().analyze_compliance)
    draft = "draft text"

    result = asyncio.run(reviewer.run_review(draft))
    assert reviewer.state == ReviewState.REVIEWED
    assert result.risk_level == RiskLevel.WARNING

    draft = reviewer.apply_revision()
    assert draft == WARNING_ANALYSIS["revisedText"]


def test_apply_is_rejected_when_safe():
    reviewer = ComplianceReviewer(FakeLLM(analysis=SAFE_ANALYSIS).analyze_compliance)
    asyncio.run(reviewer.run_review("draft text"))

    assert reviewer.state == ReviewState.REVIEWED
    assert not reviewer.can_apply
    with pytest.raises(InputValidationError):
        reviewer.apply_revision()


def test_apply_is_rejected_before_review():
    with pytest.raises(InputValidationError):
        ComplianceReviewer(FakeLLM().analyze_compliance).apply_revision()


def test_blank_draft_is_rejected_without_call():
    llm = FakeLLM()
    reviewer = ComplianceReviewer(llm.analyze_compliance)

    with pytest.raises(InputValidationError):
        asyncio.run(reviewer.run_review("   "))

    assert llm.count("analyze") == 0
    assert reviewer.state == ReviewState.INACTIVE


def test_service_failure_returns_to_inactive():
    llm = FakeLLM()
    reviewer = ComplianceReviewer(llm.analyze_compliance)
    asyncio.run(reviewer.run_review("draft text"))
    llm.fail.add("analyze")

    with pytest.raises(ExternalServiceError):
        asyncio.run(reviewer.run_review("draft text"))

    assert reviewer.state == ReviewState.INACTIVE
    assert reviewer.result is None


def test_unparsable_answer_returns_to_inactive():
    llm = FakeLLM()
    llm.analysis = "Извините, не могу помочь."
    reviewer = ComplianceReviewer(llm.analyze_compliance)

    with pytest.raises(ParseError):
        asyncio.run(reviewer.run_review("draft text"))

    assert reviewer.state == ReviewState.INACTIVE
    assert reviewer.result is None


def test_state_is_analyzing_during_call():
    seen = []

    async def analyze(text):
        seen.append(reviewer.state)
        return json.dumps(SAFE_ANALYSIS)

    reviewer = ComplianceReviewer(analyze)
    asyncio.run(reviewer.run_review("draft text"))

    assert seen == [ReviewState.ANALYZING]


def test_invalidate_clears_result():
    reviewer = ComplianceReviewer(FakeLLM().analyze_compliance)
    asyncio.run(reviewer.run_review("draft text"))

    reviewer.invalidate()

    assert reviewer.state == ReviewState.INACTIVE
    assert reviewer.result is None


def test_invalidate_during_analysis_blocks_second_run_and_discards_answer():
    second_attempt = []

    async def analyze(text):
        reviewer.invalidate()
        assert reviewer.state == ReviewState.ANALYZING
        with pytest.raises(InputValidationError):
            await reviewer.run_review("новый текст")
        second_attempt.append("rejected")
        return json.dumps(SAFE_ANALYSIS)

    reviewer = ComplianceReviewer(analyze)

    with pytest.raises(InputValidationError):
        asyncio.run(reviewer.run_review("draft text"))

    assert second_attempt == ["rejected"]
    assert reviewer.state == ReviewState.INACTIVE
    assert reviewer.result is None


def test_run_after_discarded_answer_succeeds():
    calls = []

    async def analyze(text):
        calls.append(text)
        if len(calls) == 1:
            reviewer.invalidate()
        return json.dumps(SAFE_ANALYSIS)

    reviewer = ComplianceReviewer(analyze)
    with pytest.raises(InputValidationError):
        asyncio.run(reviewer.run_review("первый"))

    result = asyncio.run(reviewer.run_review("второй"))

    assert result.risk_level.value == "SAFE"
    assert reviewer.state == ReviewState.REVIEWED
