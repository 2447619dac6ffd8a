"""Undo/redo stacks for one editing session."""

from dataclasses import dataclass, field

from property_stage.domain.generation import GenerationResult


@dataclass
class EditHistory:
    """Two-stack undo/redo over generation results.

    ``past`` is ordered oldest to newest, ``future`` newest-undone first.
    ``current`` is ``None`` while only the untouched source is shown.
    """

    past: list[GenerationResult] = field(default_factory=list)
    future: list[GenerationResult] = field(default_factory=list)
    current: GenerationResult | None = None

    @property
    def can_undo(self) -> bool:
        return bool(self.past) or self.current is not None

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    def push_new_result(self, result: GenerationResult) -> None:
        """Make ``result`` current. Any pending redo states are dropped."""
        if self.current is not None:
            self.past.append(self.current)
        self.current = result
        self.future.clear()

    def undo(self) -> GenerationResult | None:
        if self.past:
            if self.current is not None:
                self.future.insert(0, self.current)
            self.current = self.past.pop()
        elif self.current is not None:
            self.future.insert(0, self.current)
            self.current = None
        return self.current

    def redo(self) -> GenerationResult | None:
        if self.future:
            if self.current is not None:
                self.past.append(self.current)
            self.current = self.future.pop(0)
        return self.current

    def reset(self, current: GenerationResult | None = None) -> None:
        self.past.clear()
        self.future.clear()
        self.current = current
