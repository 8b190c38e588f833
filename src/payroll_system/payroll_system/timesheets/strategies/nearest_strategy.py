from __future__ import annotations

from .base import RoundingStrategy


class NearestQuantumStrategy(RoundingStrategy):
    """Round to the nearest quantum; exact halves round up."""

    def __init__(self, quantum: int):
        if quantum <= 0:
            raise ValueError("quantum must be positive")
        self.quantum = int(quantum)

    def round_minutes(self, minutes: int) -> int:
        return ((int(minutes) * 2 + self.quantum) // (self.quantum * 2)) * self.quantum
