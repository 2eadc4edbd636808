"""Error taxonomy shared by every stage of a replay."""

from __future__ import annotations

from typing import Any, Optional, Sequence


class ReplayError(Exception):
    """Base class for failures raised while replaying a construction.

    ``step_path`` locates the failing step: the first entry is the index in
    the top-level script, and each further entry is the index inside a macro
    invoked by the previous step.  ``partial`` is filled in by the top-level
    replay with the result as it stood before the failing step.
    """

    def __init__(self, reason: str, *, step_path: Sequence[int] = ()) -> None:
        super().__init__(reason)
        self.reason = reason
        self.step_path = tuple(step_path)
        self.partial: Optional[Any] = None

    @property
    def step_index(self) -> Optional[int]:
        if not self.step_path:
            return None
        return self.step_path[0]

    def at_step(self, index: int) -> "ReplayError":
        self.step_path = (index,) + self.step_path
        return self

    def __str__(self) -> str:
        if not self.step_path:
            return self.reason
        where = ".".join(str(idx) for idx in self.step_path)
        return f"[step {where}] {self.reason}"


class AmbiguousSelection(ReplayError):
    """Raised when disambiguation leaves no candidate to choose."""


class DegenerateGeometry(ReplayError):
    """Raised for coincident entities, zero radii and missing intersections."""


class UnknownReference(ReplayError):
    """Raised when a selector or macro input names an absent entity."""


class MacroArityMismatch(ReplayError):
    """Raised when a macro is invoked with the wrong inputs or outputs."""


class DuplicateLabel(ReplayError):
    """Raised when a new entity would reuse a label already in the state."""


__all__ = [
    "ReplayError",
    "AmbiguousSelection",
    "DegenerateGeometry",
    "UnknownReference",
    "MacroArityMismatch",
    "DuplicateLabel",
]
