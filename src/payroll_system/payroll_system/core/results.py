from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a guarded state transition.

    A disallowed transition is not an error: ``applied`` is False and
    ``reason`` names the guard that blocked it, so batch callers can keep going.
    """

    applied: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "TransitionResult":
        return cls(applied=True)

    @classmethod
    def blocked(cls, reason: str) -> "TransitionResult":
        return cls(applied=False, reason=reason)
