"""LLMService: the three external Gemini calls used by the workflow.

Provides async calls for:
- draft generation from a scanned/PDF incoming document plus an instruction;
- transcription of dictated audio into instruction text;
- legal-compliance analysis of a draft (raw JSON text, validated by the reviewer).

Every failure (missing credential, network, empty answer) surfaces as
``ExternalServiceError``; nothing is retried here.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from dotenv import load_dotenv
from langchain_core.messages import HumanMessage
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from prompts.drafting_templates import (
    DRAFT_HUMAN_TEMPLATE,
    DRAFT_SYSTEM_PROMPT,
    LEGAL_REVIEW_HUMAN_TEMPLATE,
    LEGAL_REVIEW_PROMPT,
    TRANSCRIBE_PROMPT,
)
from sekretar.config import Config
from sekretar.errors import ExternalServiceError, MissingCredentialError
from sekretar.schemas import GenerationRequest, RiskLevel, Severity
from sekretar.utils.text import format_ru_long_date

load_dotenv()  # This loads the .env file

# Gemini-side shape of LegalAnalysisResult; the reviewer still validates strictly
ANALYSIS_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "hasRisks": {"type": "boolean"},
        "riskLevel": {"type": "string", "enum": [r.value for r in RiskLevel]},
        "generalComment": {"type": "string"},
        "revisedText": {"type": "string"},
        "issues": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "description": {"type": "string"},
                    "severity": {"type": "string", "enum": [s.value for s in Severity]},
                    "citation": {"type": "string"},
                },
                "required": ["description", "severity"],
            },
        },
    },
    "required": ["hasRisks", "riskLevel", "issues", "generalComment", "revisedText"],
}


def _content_text(resp) -> str:
    content = resp.content if hasattr(resp, "content") else resp
    if isinstance(content, list):
        # Multi-part answers come back as a list of text blocks
        content = "".join(p.get("text", "") if isinstance(p, dict) else str(p) for p in content)
    return str(content or "")


class LLMService:
    def __init__(self, cfg: Config = Config, api_key: Optional[str] = None):
        self.cfg = cfg
        self.api_key = api_key or cfg.GOOGLE_API_KEY
        if not self.api_key:
            raise MissingCredentialError("GOOGLE_API_KEY is not set; the AI service cannot be called.")

    def _chat(self, model: str, temperature: float, **kwargs) -> ChatGoogleGenerativeAI:
        # A fresh client per call: each request may run on its own event loop
        return ChatGoogleGenerativeAI(model=model, temperature=temperature, google_api_key=self.api_key, **kwargs)

    async def generate_draft(self, request: GenerationRequest, current_date: date) -> str:
        text = DRAFT_HUMAN_TEMPLATE.format(
            system_prompt=DRAFT_SYSTEM_PROMPT,
            current_date=format_ru_long_date(current_date),
            instruction=request.instruction_text,
        )
        message = HumanMessage(
            content=[
                {"type": "text", "text": text},
                {"type": "media", "mime_type": request.mime_type, "data": request.source_bytes},
            ]
        )
        llm = self._chat(self.cfg.DRAFT_MODEL, self.cfg.DRAFT_TEMPERATURE)
        try:
            resp = await llm.ainvoke([message])
        except Exception as e:
            logging.exception("Draft generation call failed")
            raise ExternalServiceError(f"Draft generation failed: {e}") from e
        draft = _content_text(resp).strip()
        if not draft:
            raise ExternalServiceError("Draft generation returned an empty response")
        return draft

    async def transcribe(self, audio_b64: str, mime_type: str) -> str:
        message = HumanMessage(
            content=[
                {"type": "text", "text": TRANSCRIBE_PROMPT},
                {"type": "media", "mime_type": mime_type, "data": audio_b64},
            ]
        )
        llm = self._chat(self.cfg.TRANSCRIBE_MODEL, self.cfg.TRANSCRIBE_TEMPERATURE)
        try:
            resp = await llm.ainvoke([message])
        except Exception as e:
            logging.exception("Transcription call failed")
            raise ExternalServiceError(f"Transcription failed: {e}") from e
        return _content_text(resp).strip()

    async def analyze_compliance(self, draft_text: str, current_date: Optional[date] = None) -> str:
        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", LEGAL_REVIEW_PROMPT),
                ("human", LEGAL_REVIEW_HUMAN_TEMPLATE),
            ]
        )
        llm = self._chat(
            self.cfg.COMPLIANCE_MODEL,
            self.cfg.COMPLIANCE_TEMPERATURE,
            response_mime_type="application/json",
            response_schema=ANALYSIS_RESPONSE_SCHEMA,
        )
        chain = prompt | llm
        try:
            result = await chain.ainvoke(
                {
                    "current_date": format_ru_long_date(current_date or date.today()),
                    "draft_text": draft_text,
                }
            )
        except Exception as e:
            logging.exception("Compliance analysis call failed")
            raise ExternalServiceError(f"Compliance analysis failed: {e}") from e
        text = _content_text(result).strip()
        if not text:
            raise ExternalServiceError("Empty response from compliance analysis")
        return text
