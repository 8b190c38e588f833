from __future__ import annotations

from .base import RoundingStrategy


class NoRoundingStrategy(RoundingStrategy):
    """Keep worked minutes as recorded."""

    def round_minutes(self, minutes: int) -> int:
        return int(minutes)
