from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from ..common.money import ZERO
from ..core.enums import AdjustmentStatus, AdjustmentType, PaymentMethod, PayrollRunStatus, PayslipStatus


@dataclass(frozen=True)
class StatutoryDeductions:
    """Employee-share government deductions for one pay period."""

    sss: Decimal = ZERO
    philhealth: Decimal = ZERO
    pagibig: Decimal = ZERO
    withholding_tax: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.sss + self.philhealth + self.pagibig + self.withholding_tax


@dataclass(frozen=True)
class Payslip:
    """Domain entity: one issued payslip and its lifecycle facts."""

    id: str
    employee_id: str
    period_start: date
    period_end: date
    gross_pay: Decimal
    allowances: Decimal
    sss_deduction: Decimal
    philhealth_deduction: Decimal
    pagibig_deduction: Decimal
    tax_deduction: Decimal
    other_deductions: Decimal
    loan_deduction: Decimal
    net_pay: Decimal
    status: PayslipStatus
    issued_at: date
    confirmed_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    signature_data: Optional[str] = None
    paid_at: Optional[datetime] = None
    paid_confirmed_by: Optional[str] = None
    paid_confirmed_at: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    bank_reference_id: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    notes: Optional[str] = None
    adjustment_ref: Optional[str] = None

    @property
    def is_signed(self) -> bool:
        return self.signed_at is not None

    @property
    def total_deductions(self) -> Decimal:
        return (
            self.sss_deduction
            + self.philhealth_deduction
            + self.pagibig_deduction
            + self.tax_deduction
            + self.other_deductions
            + self.loan_deduction
        )


@dataclass(frozen=True)
class PayrollRun:
    """Snapshot of the payslips issued together; immutable once locked."""

    id: str
    period_label: str
    payslip_ids: Tuple[str, ...]
    locked: bool
    status: PayrollRunStatus
    created_at: datetime
    locked_by: Optional[str] = None
    locked_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


@dataclass(frozen=True)
class PayrollAdjustment:
    """Correction against an already issued payslip."""

    id: str
    payroll_run_id: str
    employee_id: str
    adjustment_type: AdjustmentType
    reference_payslip_id: str
    amount: Decimal
    reason: str
    created_by: str
    created_at: datetime
    status: AdjustmentStatus
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    applied_run_id: Optional[str] = None
    applied_at: Optional[datetime] = None
    correction_payslip_id: Optional[str] = None
