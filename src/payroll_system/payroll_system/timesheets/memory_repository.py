from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Sequence

from ..core.enums import TimesheetStatus
from .model import Timesheet
from .repository import TimesheetRepository


class InMemoryTimesheetRepository(TimesheetRepository):
    """Process-local timesheet table keyed by id, in insertion order."""

    def __init__(self):
        self._by_id: Dict[str, Timesheet] = {}

    def get_by_id(self, timesheet_id: str) -> Optional[Timesheet]:
        return self._by_id.get(timesheet_id)

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[Timesheet]:
        for t in self._by_id.values():
            if t.employee_id == employee_id and t.work_date == work_date:
                return t
        return None

    def add(self, timesheet: Timesheet) -> None:
        if timesheet.id in self._by_id:
            raise KeyError(f"Timesheet {timesheet.id} already exists")
        self._by_id[timesheet.id] = timesheet

    def replace(self, timesheet: Timesheet) -> None:
        if timesheet.id not in self._by_id:
            raise KeyError(f"Timesheet {timesheet.id} does not exist")
        self._by_id[timesheet.id] = timesheet

    def list_for_employee(self, employee_id: str) -> Sequence[Timesheet]:
        return [t for t in self._by_id.values() if t.employee_id == employee_id]

    def list_for_date(self, work_date: date) -> Sequence[Timesheet]:
        return [t for t in self._by_id.values() if t.work_date == work_date]

    def list_by_status(self, status: TimesheetStatus) -> Sequence[Timesheet]:
        return [t for t in self._by_id.values() if t.status == status]

    def exists_for_rule_set(self, rule_set_id: str) -> bool:
        return any(t.rule_set_id == rule_set_id for t in self._by_id.values())
