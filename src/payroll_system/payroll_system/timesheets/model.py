from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import SegmentType, TimesheetStatus


@dataclass(frozen=True)
class ClockPair:
    """One attendance pair plus the shift it is measured against ("HH:mm")."""

    check_in: str
    check_out: str
    shift_start: str
    shift_end: str
    break_minutes: int = 0


@dataclass(frozen=True)
class TimesheetFigures:
    """Minute buckets derived from one clock pair."""

    check_in_minute: int
    check_out_minute: int
    shift_start_minute: int
    shift_end_minute: int
    raw_worked_minutes: int
    worked_minutes: int
    regular_minutes: int
    overtime_minutes: int
    night_diff_minutes: int
    late_minutes: int
    undertime_minutes: int


@dataclass(frozen=True)
class TimesheetSegment:
    """Pay-rate breakdown row; lives only inside its Timesheet."""

    id: str
    timesheet_id: str
    segment_type: SegmentType
    start_time: str
    end_time: str
    hours: float
    multiplier: float


@dataclass(frozen=True)
class Timesheet:
    """Domain entity: one employee's computed hours for one day."""

    id: str
    employee_id: str
    work_date: date
    rule_set_id: str
    regular_hours: float
    overtime_hours: float
    night_diff_hours: float
    total_hours: float
    late_minutes: int
    undertime_minutes: int
    segments: Tuple[TimesheetSegment, ...]
    status: TimesheetStatus
    computed_at: datetime
    shift_id: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    overtime_needs_approval: bool = False


@dataclass(frozen=True)
class PeriodSummary:
    """Read-model: approved timesheet totals for one employee and period."""

    employee_id: str
    period_start: date
    period_end: date
    days: int
    regular_hours: float
    overtime_hours: float
    night_diff_hours: float
    total_hours: float
    late_minutes: int
    undertime_minutes: int
