"""WorkspaceRegistry: in-process drafting sessions addressed by id.

HTTP requests are stateless, so each browser session gets a workspace:
a ``RequestOrchestrator`` wired to its own microphone, audio service and
compliance reviewer, sharing the process-wide archive and LLM service.
Workspaces live in memory only and vanish on restart.

Sessions that go quiet are evicted once they have been idle for
``WORKSPACE_IDLE_TTL_SECONDS``; when ``MAX_WORKSPACES`` is reached the
least recently used one makes room. A workspace with a call in flight
(generation, transcription or review) is never evicted.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from sekretar.config import Config
from sekretar.services.archive_service import ArchiveStore
from sekretar.services.audio_service import AudioCaptureService, BufferedMicrophone, CaptureState
from sekretar.services.compliance_service import ComplianceReviewer, ReviewState
from sekretar.services.orchestrator_service import OrchestratorState, RequestOrchestrator
from sekretar.utils.ids import new_id


def _is_busy(orch: RequestOrchestrator) -> bool:
    return (
        orch.state == OrchestratorState.PROCESSING
        or orch.audio.state == CaptureState.TRANSCRIBING
        or orch.reviewer.state == ReviewState.ANALYZING
    )


class WorkspaceRegistry:
    def __init__(
        self,
        archive: ArchiveStore,
        llm_factory: Callable[[], object],
        cfg: Config = Config,
        clock: Callable[[], float] = time.monotonic,
    ):
        """``llm_factory`` returns an object with the LLMService call surface.

        It is resolved lazily at call time so a missing API key only fails
        the requests that actually need the AI service.
        """
        self.archive = archive
        self.llm_factory = llm_factory
        self.cfg = cfg
        self._clock = clock
        self._workspaces: Dict[str, RequestOrchestrator] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._workspaces)

    def create(self) -> RequestOrchestrator:
        self.evict_idle()
        if len(self._workspaces) >= self.cfg.MAX_WORKSPACES:
            self._evict_least_recent()

        ws_id = new_id("ws")

        async def generate_draft(request, current_date):
            return await self.llm_factory().generate_draft(request, current_date)

        async def transcribe(audio_b64, mime_type):
            return await self.llm_factory().transcribe(audio_b64, mime_type)

        async def analyze(draft_text):
            return await self.llm_factory().analyze_compliance(draft_text)

        orch = RequestOrchestrator(
            self.archive,
            generate_draft,
            AudioCaptureService(BufferedMicrophone(self.cfg.AUDIO_MIME_TYPE), transcribe),
            ComplianceReviewer(analyze),
            cfg=self.cfg,
            workspace_id=ws_id,
        )
        self._workspaces[ws_id] = orch
        self._last_seen[ws_id] = self._clock()
        logging.info(f"[WS {ws_id}] Workspace created")
        return orch

    def get(self, ws_id: str) -> Optional[RequestOrchestrator]:
        self.evict_idle()
        orch = self._workspaces.get(ws_id)
        if orch is not None:
            self._last_seen[ws_id] = self._clock()
        return orch

    def discard(self, ws_id: str) -> bool:
        if ws_id not in self._workspaces:
            return False
        self._drop(ws_id, "discarded")
        return True

    def evict_idle(self) -> int:
        """Drop workspaces idle longer than the TTL; returns how many went."""
        cutoff = self._clock() - self.cfg.WORKSPACE_IDLE_TTL_SECONDS
        expired = [
            ws_id
            for ws_id, seen in self._last_seen.items()
            if seen <= cutoff and not _is_busy(self._workspaces[ws_id])
        ]
        for ws_id in expired:
            self._drop(ws_id, "evicted after inactivity")
        return len(expired)

    def _evict_least_recent(self) -> None:
        candidates = [ws_id for ws_id, orch in self._workspaces.items() if not _is_busy(orch)]
        if not candidates:
            return
        oldest = min(candidates, key=lambda ws_id: self._last_seen[ws_id])
        self._drop(oldest, "evicted to make room")

    def _drop(self, ws_id: str, reason: str) -> None:
        orch = self._workspaces.pop(ws_id)
        self._last_seen.pop(ws_id, None)
        orch.audio.cancel_recording()
        logging.info(f"[WS {ws_id}] Workspace {reason}")
