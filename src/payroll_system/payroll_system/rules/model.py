from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import (
    DEFAULT_GRACE_MINUTES,
    DEFAULT_HOLIDAY_MULTIPLIER,
    DEFAULT_NIGHT_DIFF_END,
    DEFAULT_NIGHT_DIFF_MULTIPLIER,
    DEFAULT_NIGHT_DIFF_START,
    DEFAULT_OVERTIME_MULTIPLIER,
    DEFAULT_RULE_SET_ID,
    DEFAULT_STANDARD_HOURS_PER_DAY,
)
from ..core.enums import RoundingPolicy


@dataclass(frozen=True)
class AttendanceRuleSet:
    """Domain entity: attendance rules a timesheet is computed against."""

    id: str
    name: str
    standard_hours_per_day: float = DEFAULT_STANDARD_HOURS_PER_DAY
    grace_minutes: int = DEFAULT_GRACE_MINUTES
    rounding_policy: RoundingPolicy = RoundingPolicy.NEAREST_15
    overtime_requires_approval: bool = True
    night_diff_start: Optional[str] = DEFAULT_NIGHT_DIFF_START
    night_diff_end: Optional[str] = DEFAULT_NIGHT_DIFF_END
    holiday_multiplier: float = DEFAULT_HOLIDAY_MULTIPLIER
    overtime_multiplier: float = DEFAULT_OVERTIME_MULTIPLIER
    night_diff_multiplier: float = DEFAULT_NIGHT_DIFF_MULTIPLIER

    @property
    def has_night_window(self) -> bool:
        return bool(self.night_diff_start and self.night_diff_end)


DEFAULT_RULE_SET = AttendanceRuleSet(
    id=DEFAULT_RULE_SET_ID,
    name="Standard PH Rule Set",
)
