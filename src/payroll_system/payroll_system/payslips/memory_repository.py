from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Sequence

from ..core.enums import PayslipStatus
from .model import PayrollAdjustment, PayrollRun, Payslip
from .repository import AdjustmentRepository, PayrollRunRepository, PayslipRepository


class InMemoryPayslipRepository(PayslipRepository):
    def __init__(self):
        self._by_id: Dict[str, Payslip] = {}

    def get_by_id(self, payslip_id: str) -> Optional[Payslip]:
        return self._by_id.get(payslip_id)

    def add(self, payslip: Payslip) -> None:
        if payslip.id in self._by_id:
            raise KeyError(f"Payslip {payslip.id} already exists")
        self._by_id[payslip.id] = payslip

    def replace(self, payslip: Payslip) -> None:
        if payslip.id not in self._by_id:
            raise KeyError(f"Payslip {payslip.id} does not exist")
        self._by_id[payslip.id] = payslip

    def list_all(self) -> Sequence[Payslip]:
        return list(self._by_id.values())

    def list_for_employee(self, employee_id: str) -> Sequence[Payslip]:
        return [p for p in self._by_id.values() if p.employee_id == employee_id]

    def list_by_status(self, status: PayslipStatus) -> Sequence[Payslip]:
        return [p for p in self._by_id.values() if p.status == status]

    def list_issued_on(self, issued_at: date) -> Sequence[Payslip]:
        return [p for p in self._by_id.values() if p.issued_at == issued_at]


class InMemoryPayrollRunRepository(PayrollRunRepository):
    def __init__(self):
        self._by_id: Dict[str, PayrollRun] = {}

    def get_by_id(self, run_id: str) -> Optional[PayrollRun]:
        return self._by_id.get(run_id)

    def save(self, run: PayrollRun) -> None:
        self._by_id[run.id] = run

    def list_all(self) -> Sequence[PayrollRun]:
        return list(self._by_id.values())


class InMemoryAdjustmentRepository(AdjustmentRepository):
    def __init__(self):
        self._by_id: Dict[str, PayrollAdjustment] = {}

    def get_by_id(self, adjustment_id: str) -> Optional[PayrollAdjustment]:
        return self._by_id.get(adjustment_id)

    def save(self, adjustment: PayrollAdjustment) -> None:
        self._by_id[adjustment.id] = adjustment

    def list_all(self) -> Sequence[PayrollAdjustment]:
        return list(self._by_id.values())
