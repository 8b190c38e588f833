from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import PayslipStatus
from .model import PayrollAdjustment, PayrollRun, Payslip


class PayslipRepository(Protocol):
    def get_by_id(self, payslip_id: str) -> Optional[Payslip]:
        raise NotImplementedError

    def add(self, payslip: Payslip) -> None:
        raise NotImplementedError

    def replace(self, payslip: Payslip) -> None:
        raise NotImplementedError

    def list_all(self) -> Sequence[Payslip]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: str) -> Sequence[Payslip]:
        raise NotImplementedError

    def list_by_status(self, status: PayslipStatus) -> Sequence[Payslip]:
        raise NotImplementedError

    def list_issued_on(self, issued_at: date) -> Sequence[Payslip]:
        raise NotImplementedError


class PayrollRunRepository(Protocol):
    def get_by_id(self, run_id: str) -> Optional[PayrollRun]:
        raise NotImplementedError

    def save(self, run: PayrollRun) -> None:
        raise NotImplementedError

    def list_all(self) -> Sequence[PayrollRun]:
        raise NotImplementedError


class AdjustmentRepository(Protocol):
    def get_by_id(self, adjustment_id: str) -> Optional[PayrollAdjustment]:
        raise NotImplementedError

    def save(self, adjustment: PayrollAdjustment) -> None:
        raise NotImplementedError

    def list_all(self) -> Sequence[PayrollAdjustment]:
        raise NotImplementedError
