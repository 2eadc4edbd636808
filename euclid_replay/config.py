"""Shared tolerance and replay options."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional

EPSILON = 1e-9
"""Absolute tolerance for every geometric comparison in the engine.

Coordinates, lengths, cross products and segment parameters are all compared
against this one value, so tangency and coincidence decisions made by the
entity store, the intersection resolver and the selectors always agree.
"""


@dataclass
class ReplayOptions:
    """Knobs that apply to a whole replay."""

    extend_segments: Optional[bool] = None  # None: inferred from the script
    default_side: str = "left"
    apply_conclusions: bool = True


_REPLAY_OPTIONS = ReplayOptions()


def get_replay_options() -> ReplayOptions:
    """Copy of the process-wide defaults used when a replay gets no ``options``."""

    return copy.deepcopy(_REPLAY_OPTIONS)


def set_replay_options(options: ReplayOptions) -> None:
    """Replace the process-wide defaults; meant to be called once at startup.

    A replay reads the defaults once, before its first step, and never sees
    later changes.  Callers that need per-call behaviour pass ``options`` to
    :func:`~euclid_replay.interpreter.replay` instead.
    """

    global _REPLAY_OPTIONS
    _REPLAY_OPTIONS = copy.deepcopy(options)


__all__ = [
    "EPSILON",
    "ReplayOptions",
    "get_replay_options",
    "set_replay_options",
]
