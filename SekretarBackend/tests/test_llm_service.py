import asyncio
import json
from datetime import date

import pytest
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from conftest import WARNING_ANALYSIS
from sekretar.errors import ExternalServiceError, MissingCredentialError
from sekretar.schemas import GenerationRequest
from sekretar.services.compliance_service import ParseSuccess, parse_analysis
from sekretar.services.llm_service import ANALYSIS_RESPONSE_SCHEMA, LLMService


class RecordingChat:
    """Replaces ``LLMService._chat``; remembers model kwargs and prompt input."""

    def __init__(self, answer):
        self.answer = answer
        self.settings = []
        self.inputs = []

    def __call__(self, model, temperature, **kwargs):
        self.settings.append({"model": model, "temperature": temperature, **kwargs})
        return RunnableLambda(self._reply)

    def _reply(self, value):
        self.inputs.append(value)
        if isinstance(self.answer, Exception):
            raise self.answer
        return AIMessage(content=self.answer)


@pytest.fixture()
def service():
    return LLMService(api_key="test-key")


def test_missing_key_is_reported():
    class NoKey:
        GOOGLE_API_KEY = None

    with pytest.raises(MissingCredentialError):
        LLMService(cfg=NoKey)


def test_compliance_call_requests_json_with_schema(service):
    chat = RecordingChat(json.dumps(WARNING_ANALYSIS, ensure_ascii=False))
    service._chat = chat

    raw = asyncio.run(service.analyze_compliance("Текст ответа", date(2026, 10, 19)))

    settings = chat.settings[0]
    assert settings["model"] == service.cfg.COMPLIANCE_MODEL
    assert settings["response_mime_type"] == "application/json"
    assert settings["response_schema"] is ANALYSIS_RESPONSE_SCHEMA
    prompt_text = chat.inputs[0].to_string()
    assert "Текст ответа" in prompt_text
    assert "19 октября 2026 г." in prompt_text
    assert isinstance(parse_analysis(raw), ParseSuccess)


def test_response_schema_matches_result_fields():
    props = ANALYSIS_RESPONSE_SCHEMA["properties"]

    assert set(ANALYSIS_RESPONSE_SCHEMA["required"]) == set(props)
    assert props["riskLevel"]["enum"] == ["SAFE", "WARNING", "CRITICAL"]
    assert props["issues"]["items"]["properties"]["severity"]["enum"] == ["LOW", "MEDIUM", "HIGH"]


def test_draft_call_sends_document_and_instruction(service):
    chat = RecordingChat("  Уважаемый заявитель!  ")
    service._chat = chat
    request = GenerationRequest(source_bytes="QUJD", mime_type="application/pdf", instruction_text="Отказать")

    draft = asyncio.run(service.generate_draft(request, date(2026, 10, 19)))

    assert draft == "Уважаемый заявитель!"
    text_part, media_part = chat.inputs[0][0].content
    assert "Отказать" in text_part["text"]
    assert "19 октября 2026 г." in text_part["text"]
    assert media_part == {"type": "media", "mime_type": "application/pdf", "data": "QUJD"}


def test_empty_draft_is_a_failure(service):
    service._chat = RecordingChat("   ")
    request = GenerationRequest(source_bytes="QUJD", mime_type="image/png", instruction_text="Отказать")

    with pytest.raises(ExternalServiceError):
        asyncio.run(service.generate_draft(request, date(2026, 10, 19)))


def test_transport_errors_are_wrapped(service):
    service._chat = RecordingChat(RuntimeError("quota exceeded"))

    with pytest.raises(ExternalServiceError):
        asyncio.run(service.transcribe("QUJD", "audio/webm"))
