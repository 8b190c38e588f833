from __future__ import annotations

from abc import ABC, abstractmethod


class RoundingStrategy(ABC):
    """Strategy Pattern: encapsulate how worked minutes are quantized."""

    @abstractmethod
    def round_minutes(self, minutes: int) -> int:
        raise NotImplementedError
