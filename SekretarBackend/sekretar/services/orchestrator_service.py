"""RequestOrchestrator: one drafting workspace and its state machine.

Owns the attached incoming document, the instruction text and the editable
draft, and arbitrates between three asynchronous sub-workflows:
- draft generation (``IDLE -> PROCESSING -> SUCCESS | ERROR``);
- dictation through ``AudioCaptureService``;
- legal review through ``ComplianceReviewer``.

Generation and dictation are mutually exclusive. This is enforced by
rejecting the triggering action while the other one is active, never by
waiting on a lock. Nothing here is cancellable or retried automatically.

Every generation and every ``reset`` starts a new cycle. A call that
completes after its cycle was superseded does not touch the workspace;
a finished generation is still archived.
"""

from __future__ import annotations

import base64
import logging
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from sekretar.config import Config
from sekretar.errors import ExternalServiceError, InputValidationError
from sekretar.schemas import GenerationRequest, LegalAnalysisResult, SourceFile
from sekretar.services.archive_service import ArchiveStore
from sekretar.services.audio_service import AudioCaptureService
from sekretar.services.compliance_service import ComplianceReviewer
from sekretar.utils.text import append_dictation, is_blank

GENERIC_FAILURE_MESSAGE = (
    "Произошла ошибка при генерации ответа. Пожалуйста, проверьте API ключ и повторите попытку."
)


class OrchestratorState(str, Enum):
    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


GenerateFn = Callable[[GenerationRequest, date], Awaitable[str]]


def validate_source_file(source: SourceFile, cfg: Config = Config) -> None:
    """Accept images and PDFs up to ``MAX_UPLOAD_MB``."""
    mime = (source.mime_type or "").lower()
    if not (mime.startswith(cfg.ALLOWED_MIME_PREFIXES) or mime in cfg.ALLOWED_MIME_TYPES):
        raise InputValidationError("Пожалуйста, загрузите изображение (JPG, PNG) или PDF документ.")
    if source.size == 0:
        raise InputValidationError("Файл пуст.")
    if source.size > cfg.MAX_UPLOAD_MB * 1024 * 1024:
        raise InputValidationError(f"Файл слишком большой; максимум {cfg.MAX_UPLOAD_MB} МБ.")


class RequestOrchestrator:
    def __init__(
        self,
        archive: ArchiveStore,
        generate_draft: GenerateFn,
        audio: AudioCaptureService,
        reviewer: ComplianceReviewer,
        *,
        cfg: Config = Config,
        today: Callable[[], date] = date.today,
        workspace_id: str = "-",
    ):
        self.archive = archive
        self._generate_draft = generate_draft
        self.audio = audio
        self.reviewer = reviewer
        self.cfg = cfg
        self._today = today
        self.workspace_id = workspace_id

        self.state = OrchestratorState.IDLE
        self.source_file: Optional[SourceFile] = None
        self.instruction_text = ""
        self.draft_text = ""
        self.error_message: Optional[str] = None
        self._cycle = 0

    def _log(self, msg: str, *args: Any) -> None:
        logging.info(f"[WS {self.workspace_id}] " + msg, *args)

    # -------- Inputs --------

    def attach_file(self, source: SourceFile) -> None:
        if self.state == OrchestratorState.PROCESSING:
            raise InputValidationError("Дождитесь завершения генерации.")
        validate_source_file(source, self.cfg)
        self.source_file = source
        self._log("Attached %s (%s, %d bytes)", source.file_name, source.mime_type, source.size)

    def detach_file(self) -> None:
        if self.state == OrchestratorState.PROCESSING:
            raise InputValidationError("Дождитесь завершения генерации.")
        self.source_file = None

    def set_instruction(self, text: str) -> None:
        self.instruction_text = text or ""

    # -------- Generation --------

    def _check_can_generate(self) -> None:
        if self.state == OrchestratorState.PROCESSING:
            raise InputValidationError("Генерация уже выполняется.")
        if self.source_file is None:
            raise InputValidationError("Необходимо загрузить документ (скан или PDF).")
        if is_blank(self.instruction_text):
            raise InputValidationError("Укажите суть ответа.")
        if not self.audio.is_idle:
            raise InputValidationError("Дождитесь окончания записи и распознавания речи.")

    async def generate(self) -> Optional[str]:
        """Run one generation cycle; returns the draft, or None when it failed.

        Failures of the external call are reported through ``state`` (ERROR)
        and ``error_message`` rather than raised.
        """
        self._check_can_generate()

        source = self.source_file
        instruction = self.instruction_text
        request = GenerationRequest(
            source_bytes=base64.b64encode(source.data).decode("ascii"),
            mime_type=source.mime_type,
            instruction_text=instruction,
        )

        self._cycle += 1
        cycle = self._cycle
        self.state = OrchestratorState.PROCESSING
        self.error_message = None
        self.reviewer.invalidate()
        self._log("Generation started for %s", source.file_name)

        try:
            draft = await self._generate_draft(request, self._today())
            if is_blank(draft):
                raise ExternalServiceError("Draft generation returned an empty response")
        except ExternalServiceError as e:
            logging.warning("[WS %s] Generation failed: %s", self.workspace_id, e)
            if cycle == self._cycle:
                self.state = OrchestratorState.ERROR
                self.error_message = GENERIC_FAILURE_MESSAGE
            return None
        except Exception:
            if cycle == self._cycle:
                self.state = OrchestratorState.ERROR
                self.error_message = GENERIC_FAILURE_MESSAGE
            raise

        self.archive.append(source.file_name, source.mime_type, instruction, draft)
        if cycle != self._cycle:
            self._log("Workspace was reset during generation; draft archived only")
            return draft
        self.draft_text = draft
        self.state = OrchestratorState.SUCCESS
        self._log("Generation succeeded (%d chars)", len(draft))
        return draft

    def reset(self) -> None:
        self._cycle += 1
        self.audio.cancel_recording()
        self.reviewer.invalidate()
        self.source_file = None
        self.instruction_text = ""
        self.draft_text = ""
        self.error_message = None
        self.state = OrchestratorState.IDLE
        self._log("Workspace reset")

    # -------- Draft editing & review --------

    def edit_draft(self, text: str) -> None:
        if self.state == OrchestratorState.PROCESSING:
            raise InputValidationError("Дождитесь завершения генерации.")
        if text != self.draft_text:
            self.reviewer.invalidate()
        self.draft_text = text or ""

    async def review(self) -> LegalAnalysisResult:
        # Draft changes during the call invalidate the reviewer, which then discards the answer
        return await self.reviewer.run_review(self.draft_text)

    def apply_revision(self) -> str:
        self.draft_text = self.reviewer.apply_revision()
        self._log("Applied compliance revision")
        return self.draft_text

    # -------- Dictation --------

    def start_dictation(self) -> None:
        if self.state == OrchestratorState.PROCESSING:
            raise InputValidationError("Дождитесь завершения генерации.")
        self.audio.start_recording()

    def feed_dictation(self, chunk: bytes) -> None:
        self.audio.feed(chunk)

    async def stop_dictation(self) -> str:
        cycle = self._cycle
        transcript = await self.audio.stop_recording()
        if cycle != self._cycle:
            self._log("Workspace was reset during transcription; transcript dropped")
            return self.instruction_text
        # Join onto the instruction as it is now, including edits made while transcribing
        self.instruction_text = append_dictation(self.instruction_text, transcript)
        return self.instruction_text

    # -------- Views --------

    def snapshot(self) -> Dict[str, Any]:
        src = self.source_file
        result = self.reviewer.result
        return {
            "workspace_id": self.workspace_id,
            "status": self.state.value,
            "error": self.error_message,
            "file": {"file_name": src.file_name, "mime_type": src.mime_type, "size": src.size} if src else None,
            "instruction": self.instruction_text,
            "draft": self.draft_text,
            "dictation": self.audio.state.value,
            "review": {
                "state": self.reviewer.state.value,
                "can_apply": self.reviewer.can_apply,
                "result": result.model_dump(mode="json", by_alias=True) if result else None,
            },
        }
