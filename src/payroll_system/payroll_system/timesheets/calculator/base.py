from __future__ import annotations

from abc import ABC, abstractmethod

from ...rules.model import AttendanceRuleSet
from ..model import ClockPair, TimesheetFigures


class TimesheetCalculator(ABC):
    """Calculator interface (Strategy Pattern for timesheet computation)."""

    @abstractmethod
    def compute(self, rule_set: AttendanceRuleSet, pair: ClockPair) -> TimesheetFigures:
        raise NotImplementedError
