from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import TimesheetStatus
from .model import Timesheet


class TimesheetRepository(Protocol):
    def get_by_id(self, timesheet_id: str) -> Optional[Timesheet]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[Timesheet]:
        raise NotImplementedError

    def add(self, timesheet: Timesheet) -> None:
        raise NotImplementedError

    def replace(self, timesheet: Timesheet) -> None:
        """Overwrite the stored row with the same id."""

        raise NotImplementedError

    def list_for_employee(self, employee_id: str) -> Sequence[Timesheet]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[Timesheet]:
        raise NotImplementedError

    def list_by_status(self, status: TimesheetStatus) -> Sequence[Timesheet]:
        raise NotImplementedError

    def exists_for_rule_set(self, rule_set_id: str) -> bool:
        raise NotImplementedError
