"""The editing workspace: one source photo plus its undo/redo stacks."""

import logging
from dataclasses import dataclass, field

from property_stage.domain.errors import NoSourceImage
from property_stage.domain.generation import GenerationOptions, GenerationResult
from property_stage.services.editor import EditHistory
from property_stage.services.generation import GenerationOrchestrator
from property_stage.services.history import HistoryService
from property_stage.services.sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class StagingWorkspace:
    """Owns the selected source image and the edit history for it.

    Every reset starts a new edit session. A result that arrives after its
    session was reset stays in persistent history but is not pushed onto
    the current stacks.
    """

    orchestrator: GenerationOrchestrator
    history: HistoryService
    sessions: SessionManager
    source_image: str | None = None
    edits: EditHistory = field(default_factory=EditHistory)
    edit_session: int = field(default=0, init=False)

    @property
    def current(self) -> GenerationResult | None:
        return self.edits.current

    @property
    def is_busy(self) -> bool:
        return self.orchestrator.in_flight

    def select_source(self, image: str) -> None:
        """Start over with a newly uploaded photo."""
        if not image:
            raise NoSourceImage()
        self.source_image = image
        self._reset_edits()

    async def generate(self, options: GenerationOptions) -> GenerationResult:
        started_in = self.edit_session
        result = await self.orchestrator.generate(self.source_image, options)
        self._push(result, started_in)
        return result

    async def refine(self, instruction: str, options: GenerationOptions) -> GenerationResult:
        started_in = self.edit_session
        prior = self.edits.current
        result = await self.orchestrator.refine(
            self.source_image,
            prior.transformed_image if prior else None,
            instruction,
            options,
        )
        self._push(result, started_in)
        return result

    def undo(self) -> GenerationResult | None:
        return self.edits.undo()

    def redo(self) -> GenerationResult | None:
        return self.edits.redo()

    def discard(self) -> None:
        """Drop every result and show the untouched source again."""
        self._reset_edits()

    def reopen(self, entry_id: str) -> GenerationResult | None:
        """Load a persistent history entry as the new editing baseline."""
        account = self.sessions.require_current()
        entry = self.history.get_entry(account.id, entry_id)
        if entry is None:
            return None
        self.source_image = entry.original_image
        self._reset_edits(current=entry)
        return entry

    def clear(self) -> None:
        self.source_image = None
        self._reset_edits()

    def _reset_edits(self, current: GenerationResult | None = None) -> None:
        self.edit_session += 1
        self.edits.reset(current=current)

    def _push(self, result: GenerationResult, started_in: int) -> None:
        if started_in != self.edit_session:
            logger.info("Result %s belongs to a closed edit session; not shown", result.id)
            return
        self.edits.push_new_result(result)
