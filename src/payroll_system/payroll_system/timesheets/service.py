from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.ids import IdGenerator
from ..common.locks import EntityLocks
from ..common.money import round_half_up
from ..common.validators import require_non_empty
from ..core.constants import REGULAR_MULTIPLIER, SEGMENT_ID_PREFIX, TIMESHEET_ID_PREFIX
from ..core.enums import SegmentType, TimesheetStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..core.results import TransitionResult
from ..rules.model import AttendanceRuleSet
from ..rules.service import RuleSetService
from ..shifts.model import Shift
from .calculator.base import TimesheetCalculator
from .calculator.standard_calculator import StandardTimesheetCalculator
from .model import ClockPair, PeriodSummary, Timesheet, TimesheetFigures, TimesheetSegment
from .repository import TimesheetRepository

log = logging.getLogger(__name__)


def minutes_to_hours(minutes: int) -> float:
    return float(round_half_up(Decimal(int(minutes)) / 60, "0.01"))


def _day_key(employee_id: str, work_date: date) -> str:
    return f"{employee_id}:{work_date.isoformat()}"


class TimesheetService:
    def __init__(
        self,
        timesheets: TimesheetRepository,
        rule_sets: RuleSetService,
        *,
        calculator: Optional[TimesheetCalculator] = None,
        ids: Optional[IdGenerator] = None,
        locks: Optional[EntityLocks] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._timesheets = timesheets
        self._rule_sets = rule_sets
        self._calculator = calculator or StandardTimesheetCalculator()
        self._ids = ids or IdGenerator()
        self._locks = locks or EntityLocks()
        self._clock = clock

    def compute_timesheet(
        self,
        *,
        employee_id: str,
        work_date: date,
        rule_set_id: Optional[str],
        check_in: str,
        check_out: str,
        shift_start: str,
        shift_end: str,
        break_minutes: int = 0,
        shift_id: Optional[str] = None,
    ) -> Timesheet:
        """Compute one day's hours and store them as a ``computed`` timesheet.

        A still-``computed`` timesheet for the same employee and date is
        replaced in place. Once submitted (or decided) it is frozen and
        returned unchanged.
        """
        employee_id = require_non_empty(employee_id, "Employee")
        if not isinstance(work_date, date):
            raise ValidationError("Work date is required")

        pair = ClockPair(
            check_in=check_in,
            check_out=check_out,
            shift_start=shift_start,
            shift_end=shift_end,
            break_minutes=break_minutes,
        )
        # Lock order: rule set, then the employee day.
        with self._rule_sets.pinned(rule_set_id) as rule_set, self._locks.hold(_day_key(employee_id, work_date)):
            figures = self._calculator.compute(rule_set, pair)
            existing = self._timesheets.get_for_employee_and_date(employee_id, work_date)
            if existing and existing.status != TimesheetStatus.COMPUTED:
                log.debug(
                    "timesheet %s is %s, recomputation ignored",
                    existing.id,
                    existing.status.value,
                )
                return existing

            timesheet_id = existing.id if existing else self._ids.next_id(TIMESHEET_ID_PREFIX)
            timesheet = self._build(
                timesheet_id=timesheet_id,
                employee_id=employee_id,
                work_date=work_date,
                rule_set=rule_set,
                shift_id=shift_id,
                pair=pair,
                figures=figures,
            )
            if existing:
                self._timesheets.replace(timesheet)
            else:
                self._timesheets.add(timesheet)

        log.info(
            "timesheet %s computed for %s on %s: %.2fh regular, %.2fh overtime, %.2fh night",
            timesheet.id,
            employee_id,
            work_date.isoformat(),
            timesheet.regular_hours,
            timesheet.overtime_hours,
            timesheet.night_diff_hours,
        )
        return timesheet

    def compute_for_shift(
        self,
        *,
        employee_id: str,
        work_date: date,
        rule_set_id: Optional[str],
        shift: Shift,
        check_in: str,
        check_out: str,
    ) -> Timesheet:
        return self.compute_timesheet(
            employee_id=employee_id,
            work_date=work_date,
            rule_set_id=rule_set_id,
            check_in=check_in,
            check_out=check_out,
            shift_start=shift.start_time.strftime("%H:%M"),
            shift_end=shift.end_time.strftime("%H:%M"),
            break_minutes=shift.break_minutes,
            shift_id=shift.shift_id,
        )

    def submit(self, timesheet_id: str) -> TransitionResult:
        return self._transition(timesheet_id, TimesheetStatus.COMPUTED, TimesheetStatus.SUBMITTED)

    def approve(self, timesheet_id: str, approver_id: str) -> TransitionResult:
        approver_id = require_non_empty(approver_id, "Approver")
        return self._transition(
            timesheet_id, TimesheetStatus.SUBMITTED, TimesheetStatus.APPROVED, approver_id=approver_id
        )

    def reject(self, timesheet_id: str, approver_id: str) -> TransitionResult:
        approver_id = require_non_empty(approver_id, "Approver")
        return self._transition(
            timesheet_id, TimesheetStatus.SUBMITTED, TimesheetStatus.REJECTED, approver_id=approver_id
        )

    def get(self, timesheet_id: str) -> Optional[Timesheet]:
        return self._timesheets.get_by_id(timesheet_id)

    def get_by_employee(self, employee_id: str) -> Sequence[Timesheet]:
        return self._timesheets.list_for_employee(employee_id)

    def get_by_date(self, work_date: date) -> Sequence[Timesheet]:
        return self._timesheets.list_for_date(work_date)

    def get_approved(self, employee_id: str, period_start: date, period_end: date) -> Sequence[Timesheet]:
        return [
            t
            for t in self._timesheets.list_for_employee(employee_id)
            if t.status == TimesheetStatus.APPROVED and period_start <= t.work_date <= period_end
        ]

    def get_pending_approval(self) -> Sequence[Timesheet]:
        return self._timesheets.list_by_status(TimesheetStatus.SUBMITTED)

    def get_overtime_awaiting_approval(self) -> Sequence[Timesheet]:
        """Undecided timesheets carrying overtime their rule set wants approved."""
        return [
            t
            for status in (TimesheetStatus.COMPUTED, TimesheetStatus.SUBMITTED)
            for t in self._timesheets.list_by_status(status)
            if t.overtime_needs_approval
        ]

    def summarize_period(self, employee_id: str, period_start: date, period_end: date) -> PeriodSummary:
        """Aggregate approved timesheets, the input to payroll aggregation."""
        if period_end < period_start:
            raise ValidationError("Period end must be on or after period start")

        rows = self.get_approved(employee_id, period_start, period_end)
        regular = sum(Decimal(str(t.regular_hours)) for t in rows)
        overtime = sum(Decimal(str(t.overtime_hours)) for t in rows)
        night = sum(Decimal(str(t.night_diff_hours)) for t in rows)

        return PeriodSummary(
            employee_id=employee_id,
            period_start=period_start,
            period_end=period_end,
            days=len(rows),
            regular_hours=float(regular),
            overtime_hours=float(overtime),
            night_diff_hours=float(night),
            total_hours=float(regular + overtime),
            late_minutes=sum(t.late_minutes for t in rows),
            undertime_minutes=sum(t.undertime_minutes for t in rows),
        )

    def _transition(
        self,
        timesheet_id: str,
        expected: TimesheetStatus,
        target: TimesheetStatus,
        *,
        approver_id: Optional[str] = None,
    ) -> TransitionResult:
        located = self._get(timesheet_id)
        with self._locks.hold(_day_key(located.employee_id, located.work_date)):
            current = self._get(timesheet_id)
            if current.status != expected:
                log.debug("timesheet %s is %s, cannot move to %s", timesheet_id, current.status.value, target.value)
                return TransitionResult.blocked(f"status_{current.status.value}")

            changes = {"status": target}
            if approver_id is not None:
                changes.update(approved_by=approver_id, approved_at=self._clock())
            self._timesheets.replace(replace(current, **changes))

        log.info("timesheet %s %s", timesheet_id, target.value)
        return TransitionResult.ok()

    def _build(
        self,
        *,
        timesheet_id: str,
        employee_id: str,
        work_date: date,
        rule_set: AttendanceRuleSet,
        shift_id: Optional[str],
        pair: ClockPair,
        figures: TimesheetFigures,
    ) -> Timesheet:
        segments: List[TimesheetSegment] = []

        def add_segment(kind: SegmentType, start: str, end: str, minutes: int, multiplier: float) -> None:
            if minutes <= 0:
                return
            segments.append(
                TimesheetSegment(
                    id=self._ids.next_id(SEGMENT_ID_PREFIX),
                    timesheet_id=timesheet_id,
                    segment_type=kind,
                    start_time=start,
                    end_time=end,
                    hours=minutes_to_hours(minutes),
                    multiplier=float(multiplier),
                )
            )

        add_segment(SegmentType.REGULAR, pair.check_in, pair.shift_end, figures.regular_minutes, REGULAR_MULTIPLIER)
        add_segment(
            SegmentType.OVERTIME,
            pair.shift_end,
            pair.check_out,
            figures.overtime_minutes,
            rule_set.overtime_multiplier,
        )
        if rule_set.has_night_window:
            add_segment(
                SegmentType.NIGHT_DIFF,
                rule_set.night_diff_start,
                rule_set.night_diff_end,
                figures.night_diff_minutes,
                rule_set.night_diff_multiplier,
            )

        regular_hours = minutes_to_hours(figures.regular_minutes)
        overtime_hours = minutes_to_hours(figures.overtime_minutes)

        return Timesheet(
            id=timesheet_id,
            employee_id=employee_id,
            work_date=work_date,
            rule_set_id=rule_set.id,
            shift_id=shift_id,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            night_diff_hours=minutes_to_hours(figures.night_diff_minutes),
            total_hours=regular_hours + overtime_hours,
            late_minutes=figures.late_minutes,
            undertime_minutes=figures.undertime_minutes,
            segments=tuple(segments),
            status=TimesheetStatus.COMPUTED,
            computed_at=self._clock(),
            overtime_needs_approval=bool(rule_set.overtime_requires_approval) and figures.overtime_minutes > 0,
        )

    def _get(self, timesheet_id: str) -> Timesheet:
        timesheet = self._timesheets.get_by_id(timesheet_id)
        if not timesheet:
            raise NotFoundError(f"Timesheet {timesheet_id} does not exist")
        return timesheet
