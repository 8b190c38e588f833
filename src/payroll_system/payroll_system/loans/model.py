from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from ..common.money import ZERO
from ..core.enums import LoanStatus


@dataclass(frozen=True)
class LoanDeduction:
    """Append-only: one row per recorded deduction, linked to its payslip."""

    id: str
    loan_id: str
    payslip_id: str
    amount: Decimal
    deducted_at: datetime
    remaining_after: Decimal


@dataclass(frozen=True)
class LoanBalanceHistory:
    """Append-only balance ledger, kept apart from deductions for audit views."""

    id: str
    loan_id: str
    date: date
    previous_balance: Decimal
    deduction_amount: Decimal
    new_balance: Decimal
    payslip_id: str


@dataclass(frozen=True)
class LoanRepaymentSchedule:
    """Projected installment. Regenerable; never the source of truth."""

    id: str
    loan_id: str
    due_date: date
    amount: Decimal
    paid: bool = False
    skipped_reason: Optional[str] = None


@dataclass(frozen=True)
class Loan:
    """Domain entity: an employee loan and the ledgers it owns."""

    id: str
    employee_id: str
    type: str
    amount: Decimal
    monthly_deduction: Decimal
    deduction_cap_percent: Decimal
    remaining_balance: Decimal
    status: LoanStatus
    created_at: date
    approved_by: Optional[str] = None
    remarks: Optional[str] = None
    last_deducted_at: Optional[datetime] = None
    deductions: Tuple[LoanDeduction, ...] = ()
    balance_history: Tuple[LoanBalanceHistory, ...] = ()
    repayment_schedule: Tuple[LoanRepaymentSchedule, ...] = ()

    @property
    def total_deducted(self) -> Decimal:
        return sum((d.amount for d in self.deductions), ZERO)


@dataclass(frozen=True)
class EmployeeLoanDeduction:
    """Read-model: a deduction annotated with the owning loan's employee."""

    id: str
    loan_id: str
    employee_id: str
    payslip_id: str
    amount: Decimal
    deducted_at: datetime
    remaining_after: Decimal


@dataclass(frozen=True)
class DeductionOutcome:
    """Result of a deduction attempt; ``skipped`` carries the guard reason."""

    deducted: Decimal
    skipped: bool
    reason: Optional[str] = None
