import json

import pytest

from sekretar.errors import ExternalServiceError
from sekretar.schemas import SourceFile
from sekretar.services.archive_service import ArchiveStore
from sekretar.services.kv_store import InMemoryKeyValueStore

WARNING_ANALYSIS = {
    "hasRisks": True,
    "riskLevel": "WARNING",
    "generalComment": "Не указан срок рассмотрения.",
    "revisedText": "Уважаемый Иван Петрович! Исправленная редакция ответа.",
    "issues": [
        {"description": "Нет ссылки на сроки", "severity": "MEDIUM", "citation": "ст. 12 59-ФЗ"},
        {"description": "Канцелярит", "severity": "LOW"},
    ],
}

SAFE_ANALYSIS = {
    "hasRisks": False,
    "riskLevel": "SAFE",
    "generalComment": "Замечаний нет.",
    "revisedText": "Текст без изменений.",
    "issues": [],
}


class FakeLLM:
    """Stands in for LLMService; records calls and can be told to fail."""

    def __init__(self, draft="Уважаемый Иван Петрович! В ответ на Ваше обращение...", transcript="отказать",
                 analysis=None):
        self.draft = draft
        self.transcript = transcript
        self.analysis = json.dumps(WARNING_ANALYSIS if analysis is None else analysis, ensure_ascii=False)
        self.fail = set()
        self.calls = []
        self.on_generate = None

    async def generate_draft(self, request, current_date):
        self.calls.append(("draft", request))
        if self.on_generate is not None:
            self.on_generate()
        if "draft" in self.fail:
            raise ExternalServiceError("service unavailable")
        return self.draft

    async def transcribe(self, audio_b64, mime_type):
        self.calls.append(("transcribe", audio_b64, mime_type))
        if "transcribe" in self.fail:
            raise ExternalServiceError("service unavailable")
        return self.transcript

    async def analyze_compliance(self, draft_text):
        self.calls.append(("analyze", draft_text))
        if "analyze" in self.fail:
            raise ExternalServiceError("service unavailable")
        return self.analysis

    def count(self, kind):
        return sum(1 for c in self.calls if c[0] == kind)


@pytest.fixture()
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture()
def archive(kv):
    return ArchiveStore(kv)


@pytest.fixture()
def fake_llm():
    return FakeLLM()


@pytest.fixture()
def scan():
    return SourceFile(file_name="scan.pdf", mime_type="application/pdf", data=b"%PDF-1.4 fake")


@pytest.fixture()
def app(fake_llm):
    from sekretar import create_app

    app = create_app(store=InMemoryKeyValueStore(), llm_factory=lambda: fake_llm)
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()
