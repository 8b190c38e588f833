from __future__ import annotations

from typing import Optional

from ...common.datetime_utils import parse_clock_minutes
from ...common.validators import require_non_negative_int
from ...core.constants import MINUTES_PER_DAY
from ...rules.model import AttendanceRuleSet
from ..factory import RoundingStrategyFactory
from ..model import ClockPair, TimesheetFigures
from .base import TimesheetCalculator


def _overlap(start: int, end: int, window_start: int, window_end: int) -> int:
    return max(0, min(end, window_end) - max(start, window_start))


def night_diff_minutes(check_in: int, check_out: int, night_start: int, night_end: int) -> int:
    """Minutes of ``[check_in, check_out]`` inside the night window.

    ``check_out`` must already be normalized past midnight. A window that
    wraps midnight (22:00-06:00) is measured as two bounded overlaps, one
    ending at midnight and one starting at it. A same-day window is measured
    on both the work day and the following day.
    """
    if night_start == night_end:
        return 0
    if night_end < night_start:
        before_midnight = _overlap(check_in, check_out, night_start, MINUTES_PER_DAY)
        after_midnight = _overlap(check_in, check_out, MINUTES_PER_DAY, MINUTES_PER_DAY + night_end)
        return before_midnight + after_midnight
    return _overlap(check_in, check_out, night_start, night_end) + _overlap(
        check_in, check_out, night_start + MINUTES_PER_DAY, night_end + MINUTES_PER_DAY
    )


def night_window_length(night_start: int, night_end: int) -> int:
    if night_end < night_start:
        return night_end + MINUTES_PER_DAY - night_start
    return night_end - night_start


class StandardTimesheetCalculator(TimesheetCalculator):
    """Standard rule: (out - in) - break, rounded, split at the standard day."""

    def __init__(self, *, rounding: Optional[RoundingStrategyFactory] = None):
        self._rounding = rounding or RoundingStrategyFactory()

    def compute(self, rule_set: AttendanceRuleSet, pair: ClockPair) -> TimesheetFigures:
        check_in = parse_clock_minutes(pair.check_in, "Check-in")
        check_out = parse_clock_minutes(pair.check_out, "Check-out")
        shift_start = parse_clock_minutes(pair.shift_start, "Shift start")
        shift_end = parse_clock_minutes(pair.shift_end, "Shift end")
        break_minutes = require_non_negative_int(pair.break_minutes, "Break duration")

        # Overnight shift and overnight punch both wrap into the next day.
        if shift_end <= shift_start:
            shift_end += MINUTES_PER_DAY
        if check_out <= check_in:
            check_out += MINUTES_PER_DAY

        raw_worked = max(0, check_out - check_in - break_minutes)
        worked = self._rounding.for_policy(rule_set.rounding_policy).round_minutes(raw_worked)

        raw_late = check_in - shift_start
        late = raw_late if raw_late > int(rule_set.grace_minutes) else 0
        undertime = shift_end - check_out if check_out < shift_end else 0

        standard_minutes = int(round(float(rule_set.standard_hours_per_day) * 60))
        regular = min(worked, standard_minutes)
        overtime = max(0, worked - regular)

        night = 0
        if rule_set.has_night_window:
            night_start = parse_clock_minutes(rule_set.night_diff_start, "Night differential start")
            night_end = parse_clock_minutes(rule_set.night_diff_end, "Night differential end")
            night = night_diff_minutes(check_in, check_out, night_start, night_end)
            night = min(night, worked, night_window_length(night_start, night_end))

        return TimesheetFigures(
            check_in_minute=check_in,
            check_out_minute=check_out,
            shift_start_minute=shift_start,
            shift_end_minute=shift_end,
            raw_worked_minutes=raw_worked,
            worked_minutes=worked,
            regular_minutes=regular,
            overtime_minutes=overtime,
            night_diff_minutes=night,
            late_minutes=late,
            undertime_minutes=undertime,
        )
