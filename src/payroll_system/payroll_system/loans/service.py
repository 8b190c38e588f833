from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import ROUND_CEILING, Decimal
from typing import Callable, List, Optional, Sequence

from ..common.datetime_utils import add_months, now_local
from ..common.ids import IdGenerator
from ..common.locks import EntityLocks
from ..common.money import ZERO, floor_money, to_money
from ..common.validators import require_non_empty, require_non_negative_money, require_positive_money
from ..core.constants import (
    DEFAULT_DEDUCTION_CAP_PERCENT,
    LOAN_DEDUCTION_ID_PREFIX,
    LOAN_HISTORY_ID_PREFIX,
    LOAN_ID_PREFIX,
    LOAN_SCHEDULE_ID_PREFIX,
)
from ..core.enums import LoanStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..core.results import TransitionResult
from .model import (
    DeductionOutcome,
    EmployeeLoanDeduction,
    Loan,
    LoanBalanceHistory,
    LoanDeduction,
    LoanRepaymentSchedule,
)
from .repository import LoanRepository

log = logging.getLogger(__name__)

SKIP_FROZEN = "frozen"
SKIP_INSUFFICIENT_NET_PAY = "insufficient_net_pay"

_CLOSED = (LoanStatus.SETTLED, LoanStatus.CANCELLED)


def _cap_percent(value) -> Decimal:
    percent = to_money(value, "Deduction cap percent")
    if percent <= 0 or percent > 100:
        raise ValidationError("Deduction cap percent must be within (0, 100]")
    return percent


class LoanService:
    """Loan ledger: balances only go down, and only through a deduction.

    ``record_capped_deduction`` is the entry point payroll runs use; it never
    takes more than the loan's cap percentage of the employee's net pay and
    never pushes the balance below zero. ``record_deduction`` is the uncapped
    primitive for callers that already computed a safe amount.
    """

    def __init__(
        self,
        loans: LoanRepository,
        *,
        ids: Optional[IdGenerator] = None,
        locks: Optional[EntityLocks] = None,
        clock: Callable[[], datetime] = now_local,
        default_cap_percent=DEFAULT_DEDUCTION_CAP_PERCENT,
    ):
        self._loans = loans
        self._ids = ids or IdGenerator()
        self._locks = locks or EntityLocks()
        self._clock = clock
        self._default_cap_percent = _cap_percent(default_cap_percent)

    def create_loan(
        self,
        *,
        employee_id: str,
        loan_type: str,
        amount,
        monthly_deduction,
        deduction_cap_percent=None,
        approved_by: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> Loan:
        principal = require_positive_money(amount, "Loan amount")
        monthly = require_positive_money(monthly_deduction, "Monthly deduction")
        cap = self._default_cap_percent if deduction_cap_percent is None else _cap_percent(deduction_cap_percent)

        loan = Loan(
            id=self._ids.next_id(LOAN_ID_PREFIX),
            employee_id=require_non_empty(employee_id, "Employee"),
            type=require_non_empty(loan_type, "Loan type"),
            amount=principal,
            monthly_deduction=monthly,
            deduction_cap_percent=cap,
            remaining_balance=principal,
            status=LoanStatus.ACTIVE,
            created_at=self._clock().date(),
            approved_by=approved_by,
            remarks=remarks,
        )
        self._loans.add(loan)
        log.info("loan %s created for %s: %s at %s/month (cap %s%%)", loan.id, loan.employee_id, principal, monthly, cap)
        return loan

    def record_deduction(self, loan_id: str, payslip_id: str, amount) -> DeductionOutcome:
        value = require_non_negative_money(amount, "Deduction amount")
        payslip_id = require_non_empty(payslip_id, "Payslip")

        with self._locks.hold(loan_id):
            loan = self._get(loan_id)
            if loan.status in _CLOSED:
                log.debug("loan %s is %s, deduction ignored", loan_id, loan.status.value)
                return DeductionOutcome(deducted=ZERO, skipped=True, reason=loan.status.value)
            applied = self._apply_deduction(loan, payslip_id, value)

        return DeductionOutcome(deducted=applied, skipped=False)

    def compute_capped_deduction(self, loan_id: str, employee_net_pay) -> Decimal:
        net_pay = to_money(employee_net_pay, "Net pay")
        loan = self._get(loan_id)
        if loan.status != LoanStatus.ACTIVE:
            return ZERO
        return self._capped_amount(loan, net_pay)

    def record_capped_deduction(self, loan_id: str, payslip_id: str, employee_net_pay) -> DeductionOutcome:
        net_pay = to_money(employee_net_pay, "Net pay")
        payslip_id = require_non_empty(payslip_id, "Payslip")

        with self._locks.hold(loan_id):
            loan = self._get(loan_id)
            if loan.status != LoanStatus.ACTIVE:
                log.debug("loan %s is %s, capped deduction skipped", loan_id, loan.status.value)
                return DeductionOutcome(deducted=ZERO, skipped=True, reason=SKIP_FROZEN)

            amount = self._capped_amount(loan, net_pay)
            if amount <= 0:
                # Carried forward to the next pay period.
                log.info("loan %s: net pay %s too low for a deduction on %s", loan_id, net_pay, payslip_id)
                return DeductionOutcome(deducted=ZERO, skipped=True, reason=SKIP_INSUFFICIENT_NET_PAY)

            applied = self._apply_deduction(loan, payslip_id, amount)

        return DeductionOutcome(deducted=applied, skipped=False)

    def freeze(self, loan_id: str) -> TransitionResult:
        return self._set_status(loan_id, LoanStatus.FROZEN, allowed_from=(LoanStatus.ACTIVE,))

    def unfreeze(self, loan_id: str) -> TransitionResult:
        return self._set_status(loan_id, LoanStatus.ACTIVE, allowed_from=(LoanStatus.FROZEN,))

    def cancel(self, loan_id: str) -> TransitionResult:
        """Soft-cancel: the ledgers are kept, only the status changes."""
        return self._set_status(loan_id, LoanStatus.CANCELLED, allowed_from=(LoanStatus.ACTIVE, LoanStatus.FROZEN))

    def update_terms(
        self,
        loan_id: str,
        *,
        monthly_deduction=None,
        deduction_cap_percent=None,
        remarks: Optional[str] = None,
    ) -> TransitionResult:
        changes = {}
        if monthly_deduction is not None:
            changes["monthly_deduction"] = require_positive_money(monthly_deduction, "Monthly deduction")
        if deduction_cap_percent is not None:
            changes["deduction_cap_percent"] = _cap_percent(deduction_cap_percent)
        if remarks is not None:
            changes["remarks"] = remarks

        with self._locks.hold(loan_id):
            loan = self._get(loan_id)
            if loan.status in _CLOSED:
                return TransitionResult.blocked(loan.status.value)
            if changes:
                self._loans.replace(replace(loan, **changes))

        log.info("loan %s terms updated: %s", loan_id, ", ".join(sorted(changes)) or "-")
        return TransitionResult.ok()

    def generate_schedule(self, loan_id: str) -> Sequence[LoanRepaymentSchedule]:
        """Project installments from the principal, one per month.

        The last installment is the true remainder, so the projection never
        adds up to more than the principal.
        """
        with self._locks.hold(loan_id):
            loan = self._get(loan_id)
            months = int((loan.amount / loan.monthly_deduction).to_integral_value(rounding=ROUND_CEILING))
            start = self._clock().date()

            schedule: List[LoanRepaymentSchedule] = []
            remaining = loan.amount
            for i in range(months):
                installment = min(loan.monthly_deduction, remaining)
                schedule.append(
                    LoanRepaymentSchedule(
                        id=self._ids.next_id(LOAN_SCHEDULE_ID_PREFIX),
                        loan_id=loan.id,
                        due_date=add_months(start, i + 1),
                        amount=installment,
                    )
                )
                remaining -= installment

            self._loans.replace(replace(loan, repayment_schedule=tuple(schedule)))

        log.info("loan %s: %d installments scheduled", loan_id, len(schedule))
        return schedule

    def get(self, loan_id: str) -> Optional[Loan]:
        return self._loans.get_by_id(loan_id)

    def get_by_employee(self, employee_id: str) -> Sequence[Loan]:
        return self._loans.list_for_employee(employee_id)

    def get_active_by_employee(self, employee_id: str) -> Sequence[Loan]:
        return [loan for loan in self._loans.list_for_employee(employee_id) if loan.status == LoanStatus.ACTIVE]

    def get_schedule(self, loan_id: str) -> Sequence[LoanRepaymentSchedule]:
        loan = self._loans.get_by_id(loan_id)
        return list(loan.repayment_schedule) if loan else []

    def get_balance_history(self, loan_id: str) -> Sequence[LoanBalanceHistory]:
        loan = self._loans.get_by_id(loan_id)
        return list(loan.balance_history) if loan else []

    def get_all_deductions(self) -> Sequence[EmployeeLoanDeduction]:
        """Every loan's deductions, most recent first."""
        rows = [
            EmployeeLoanDeduction(
                id=d.id,
                loan_id=d.loan_id,
                employee_id=loan.employee_id,
                payslip_id=d.payslip_id,
                amount=d.amount,
                deducted_at=d.deducted_at,
                remaining_after=d.remaining_after,
            )
            for loan in self._loans.list_all()
            for d in loan.deductions
        ]
        rows.sort(key=lambda r: (r.deducted_at, r.id), reverse=True)
        return rows

    def _capped_amount(self, loan: Loan, net_pay: Decimal) -> Decimal:
        cap = floor_money(loan.deduction_cap_percent / 100 * net_pay)
        return max(ZERO, min(loan.monthly_deduction, loan.remaining_balance, cap))

    def _apply_deduction(self, loan: Loan, payslip_id: str, amount: Decimal) -> Decimal:
        """Append both ledger rows and commit. Caller holds the loan's lock."""
        now = self._clock()
        applied = min(amount, loan.remaining_balance)
        new_balance = loan.remaining_balance - applied

        deduction = LoanDeduction(
            id=self._ids.next_id(LOAN_DEDUCTION_ID_PREFIX),
            loan_id=loan.id,
            payslip_id=payslip_id,
            amount=applied,
            deducted_at=now,
            remaining_after=new_balance,
        )
        history = LoanBalanceHistory(
            id=self._ids.next_id(LOAN_HISTORY_ID_PREFIX),
            loan_id=loan.id,
            date=now.date(),
            previous_balance=loan.remaining_balance,
            deduction_amount=applied,
            new_balance=new_balance,
            payslip_id=payslip_id,
        )
        settled = new_balance == 0
        self._loans.replace(
            replace(
                loan,
                remaining_balance=new_balance,
                status=LoanStatus.SETTLED if settled else loan.status,
                last_deducted_at=now,
                deductions=loan.deductions + (deduction,),
                balance_history=loan.balance_history + (history,),
            )
        )

        log.info("loan %s: deducted %s for payslip %s, balance %s", loan.id, applied, payslip_id, new_balance)
        if settled:
            log.info("loan %s settled", loan.id)
        return applied

    def _set_status(self, loan_id: str, target: LoanStatus, *, allowed_from) -> TransitionResult:
        with self._locks.hold(loan_id):
            loan = self._get(loan_id)
            if loan.status not in allowed_from:
                log.debug("loan %s is %s, cannot move to %s", loan_id, loan.status.value, target.value)
                return TransitionResult.blocked(loan.status.value)
            self._loans.replace(replace(loan, status=target))

        log.info("loan %s %s -> %s", loan_id, loan.status.value, target.value)
        return TransitionResult.ok()

    def _get(self, loan_id: str) -> Loan:
        loan = self._loans.get_by_id(loan_id)
        if not loan:
            raise NotFoundError(f"Loan {loan_id} does not exist")
        return loan
