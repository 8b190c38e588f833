from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from ..common.datetime_utils import now_local
from ..common.ids import IdGenerator
from ..common.locks import EntityLocks
from ..common.money import round_half_up, to_money
from ..common.validators import require_non_empty, require_non_negative_money
from ..core.constants import (
    ADJUSTMENT_ID_PREFIX,
    CORRECTION_PAYSLIP_ID_PREFIX,
    PAYROLL_RUN_ID_PREFIX,
    PAYSLIP_ID_PREFIX,
)
from ..core.enums import AdjustmentStatus, AdjustmentType, PaymentMethod, PayrollRunStatus, PayslipStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..core.results import TransitionResult
from .calculator import DeductionCalculator
from .model import PayrollAdjustment, PayrollRun, Payslip, StatutoryDeductions
from .repository import AdjustmentRepository, PayrollRunRepository, PayslipRepository

log = logging.getLogger(__name__)


def _payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError(f"Unknown payment method: {value!r}")


class PayslipService:
    """Owns payslip status. Every transition only moves a payslip forward.

    Transitions requested from a state that does not allow them are no-ops
    that report why in the returned ``TransitionResult``; payroll batches keep
    going past a single bad case.
    """

    def __init__(
        self,
        payslips: PayslipRepository,
        runs: PayrollRunRepository,
        adjustments: AdjustmentRepository,
        *,
        ids: Optional[IdGenerator] = None,
        locks: Optional[EntityLocks] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._payslips = payslips
        self._runs = runs
        self._adjustments = adjustments
        self._ids = ids or IdGenerator()
        self._locks = locks or EntityLocks()
        self._clock = clock

    def issue(
        self,
        *,
        employee_id: str,
        period_start: date,
        period_end: date,
        gross_pay,
        allowances=0,
        deductions: Optional[StatutoryDeductions] = None,
        other_deductions=0,
        loan_deduction=0,
        issued_at: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Payslip:
        return self._issue(
            id_prefix=PAYSLIP_ID_PREFIX,
            employee_id=employee_id,
            period_start=period_start,
            period_end=period_end,
            gross_pay=gross_pay,
            allowances=allowances,
            deductions=deductions or StatutoryDeductions(),
            other_deductions=other_deductions,
            loan_deduction=loan_deduction,
            issued_at=issued_at,
            notes=notes,
        )

    def issue_from_gross(
        self,
        *,
        employee_id: str,
        period_start: date,
        period_end: date,
        gross_pay,
        calculator: DeductionCalculator,
        allowances=0,
        other_deductions=0,
        loan_deduction=0,
        issued_at: Optional[date] = None,
    ) -> Payslip:
        gross = require_non_negative_money(gross_pay, "Gross pay")
        return self.issue(
            employee_id=employee_id,
            period_start=period_start,
            period_end=period_end,
            gross_pay=gross,
            allowances=allowances,
            deductions=calculator.compute(gross),
            other_deductions=other_deductions,
            loan_deduction=loan_deduction,
            issued_at=issued_at,
        )

    def generate_thirteenth_month(
        self, employees: Iterable[Tuple[str, object]], *, year: Optional[int] = None
    ) -> List[Payslip]:
        """Issue one 13th-month payslip per (employee_id, annual salary)."""
        year = int(year or self._clock().year)
        # Validate the whole batch before issuing anything.
        batch = [
            (require_non_empty(employee_id, "Employee"), require_non_negative_money(annual_salary, "Annual salary"))
            for employee_id, annual_salary in employees
        ]
        return [
            self.issue(
                employee_id=employee_id,
                period_start=date(year, 1, 1),
                period_end=date(year, 12, 31),
                gross_pay=round_half_up(salary / 12),
                notes="13th month pay",
            )
            for employee_id, salary in batch
        ]

    def confirm(self, payslip_id: str) -> TransitionResult:
        def apply(p: Payslip) -> Union[Payslip, str]:
            if p.status != PayslipStatus.ISSUED:
                return "not_issued"
            return replace(p, status=PayslipStatus.CONFIRMED, confirmed_at=self._clock())

        return self._transition(payslip_id, "confirm", apply)

    def publish(self, payslip_id: str) -> TransitionResult:
        def apply(p: Payslip) -> Union[Payslip, str]:
            if p.status != PayslipStatus.CONFIRMED:
                return "not_confirmed"
            return replace(p, status=PayslipStatus.PUBLISHED, published_at=self._clock())

        return self._transition(payslip_id, "publish", apply)

    def sign(self, payslip_id: str, signature_data: str) -> TransitionResult:
        """Attach the employee's signature. Status does not advance."""
        signature_data = require_non_empty(signature_data, "Signature")

        def apply(p: Payslip) -> Union[Payslip, str]:
            if p.status not in (PayslipStatus.PUBLISHED, PayslipStatus.PAID):
                return "not_signable"
            if p.is_signed:
                return "already_signed"
            return replace(p, signed_at=self._clock(), signature_data=signature_data)

        return self._transition(payslip_id, "sign", apply)

    def confirm_paid_by_finance(
        self,
        payslip_id: str,
        *,
        confirmed_by: str,
        method,
        reference: Optional[str] = None,
    ) -> TransitionResult:
        """Finance marks a published payslip paid. Payment facts are written once."""
        confirmed_by = require_non_empty(confirmed_by, "Finance reviewer")
        method = _payment_method(method)

        def apply(p: Payslip) -> Union[Payslip, str]:
            if p.status != PayslipStatus.PUBLISHED:
                return "not_published"
            now = self._clock()
            return replace(
                p,
                status=PayslipStatus.PAID,
                paid_at=now,
                paid_confirmed_by=confirmed_by,
                paid_confirmed_at=now,
                payment_method=method,
                bank_reference_id=reference,
            )

        return self._transition(payslip_id, "confirm_paid_by_finance", apply)

    def record_payment(self, payslip_id: str, *, method, reference: Optional[str] = None) -> TransitionResult:
        """Mark a published payslip paid without a named finance reviewer."""
        method = _payment_method(method)

        def apply(p: Payslip) -> Union[Payslip, str]:
            if p.status != PayslipStatus.PUBLISHED:
                return "not_published"
            return replace(
                p,
                status=PayslipStatus.PAID,
                paid_at=self._clock(),
                payment_method=method,
                bank_reference_id=reference,
            )

        return self._transition(payslip_id, "record_payment", apply)

    def acknowledge(self, payslip_id: str, employee_id: str) -> TransitionResult:
        """Employee confirms receipt; needs both payment and a signature."""
        employee_id = require_non_empty(employee_id, "Employee")

        def apply(p: Payslip) -> Union[Payslip, str]:
            if p.status != PayslipStatus.PAID:
                return "not_paid"
            if not p.is_signed:
                return "unsigned"
            return replace(
                p,
                status=PayslipStatus.ACKNOWLEDGED,
                acknowledged_at=self._clock(),
                acknowledged_by=employee_id,
            )

        return self._transition(payslip_id, "acknowledge", apply)

    def open_run(self, issued_at: date) -> PayrollRun:
        """Create a draft run for an issuance date, or return the existing one."""
        run_id = self._run_id(issued_at)
        with self._locks.hold(run_id):
            existing = self._runs.get_by_id(run_id)
            if existing:
                return existing
            run = PayrollRun(
                id=run_id,
                period_label=issued_at.isoformat(),
                payslip_ids=self._ids_issued_on(issued_at),
                locked=False,
                status=PayrollRunStatus.DRAFT,
                created_at=self._clock(),
            )
            self._runs.save(run)
        log.info("payroll run %s opened with %d payslips", run.id, len(run.payslip_ids))
        return run

    def lock_run(self, issued_at: date, admin_id: Optional[str] = None) -> PayrollRun:
        """Freeze every payslip issued on ``issued_at`` into one payroll run.

        Re-locking a locked run returns it untouched.
        """
        run_id = self._run_id(issued_at)
        with self._locks.hold(run_id):
            existing = self._runs.get_by_id(run_id)
            if existing and existing.locked:
                log.debug("payroll run %s already locked", run_id)
                return existing

            now = self._clock()
            payslip_ids = self._ids_issued_on(issued_at)
            if existing:
                run = replace(
                    existing,
                    payslip_ids=payslip_ids,
                    locked=True,
                    status=PayrollRunStatus.LOCKED,
                    locked_by=admin_id,
                    locked_at=now,
                )
            else:
                run = PayrollRun(
                    id=run_id,
                    period_label=issued_at.isoformat(),
                    payslip_ids=payslip_ids,
                    locked=True,
                    status=PayrollRunStatus.LOCKED,
                    created_at=now,
                    locked_by=admin_id,
                    locked_at=now,
                )
            self._runs.save(run)

        log.info("payroll run %s locked by %s with %d payslips", run.id, admin_id or "-", len(run.payslip_ids))
        return run

    def publish_run(self, issued_at: date) -> TransitionResult:
        """Publish a locked run and every confirmed payslip in it."""
        run_id = self._run_id(issued_at)
        with self._locks.hold(run_id):
            run = self._get_run(run_id)
            if run.status != PayrollRunStatus.LOCKED:
                log.debug("payroll run %s is %s, cannot publish", run_id, run.status.value)
                return TransitionResult.blocked(f"status_{run.status.value}")

            published = [pid for pid in run.payslip_ids if self.publish(pid).applied]
            self._runs.save(replace(run, status=PayrollRunStatus.PUBLISHED, published_at=self._clock()))

        log.info("payroll run %s published (%d payslips published)", run_id, len(published))
        return TransitionResult.ok()

    def mark_run_paid(self, issued_at: date) -> TransitionResult:
        run_id = self._run_id(issued_at)
        with self._locks.hold(run_id):
            run = self._get_run(run_id)
            if run.status != PayrollRunStatus.PUBLISHED:
                log.debug("payroll run %s is %s, cannot mark paid", run_id, run.status.value)
                return TransitionResult.blocked(f"status_{run.status.value}")
            self._runs.save(replace(run, status=PayrollRunStatus.PAID, paid_at=self._clock()))

        log.info("payroll run %s paid", run_id)
        return TransitionResult.ok()

    def create_adjustment(
        self,
        *,
        payroll_run_id: str,
        employee_id: str,
        adjustment_type,
        reference_payslip_id: str,
        amount,
        reason: str,
        created_by: str,
    ) -> PayrollAdjustment:
        try:
            kind = AdjustmentType(adjustment_type)
        except ValueError:
            raise ValidationError(f"Unknown adjustment type: {adjustment_type!r}")
        value = to_money(amount, "Adjustment amount")
        if value == 0:
            raise ValidationError("Adjustment amount cannot be zero")
        if not self._payslips.get_by_id(reference_payslip_id):
            raise NotFoundError(f"Payslip {reference_payslip_id} does not exist")

        adjustment = PayrollAdjustment(
            id=self._ids.next_id(ADJUSTMENT_ID_PREFIX),
            payroll_run_id=require_non_empty(payroll_run_id, "Payroll run"),
            employee_id=require_non_empty(employee_id, "Employee"),
            adjustment_type=kind,
            reference_payslip_id=reference_payslip_id,
            amount=value,
            reason=require_non_empty(reason, "Reason"),
            created_by=require_non_empty(created_by, "Created by"),
            created_at=self._clock(),
            status=AdjustmentStatus.PENDING,
        )
        self._adjustments.save(adjustment)
        log.info("adjustment %s created against %s (%s %s)", adjustment.id, reference_payslip_id, kind.value, value)
        return adjustment

    def approve_adjustment(self, adjustment_id: str, approver_id: str) -> TransitionResult:
        return self._decide_adjustment(adjustment_id, approver_id, AdjustmentStatus.APPROVED)

    def reject_adjustment(self, adjustment_id: str, approver_id: str) -> TransitionResult:
        return self._decide_adjustment(adjustment_id, approver_id, AdjustmentStatus.REJECTED)

    def apply_adjustment(self, adjustment_id: str, run_id: str) -> TransitionResult:
        """Issue a correction payslip for an approved adjustment."""
        run_id = require_non_empty(run_id, "Payroll run")
        with self._locks.hold(adjustment_id):
            adjustment = self._get_adjustment(adjustment_id)
            if adjustment.status != AdjustmentStatus.APPROVED:
                log.debug("adjustment %s is %s, cannot apply", adjustment_id, adjustment.status.value)
                return TransitionResult.blocked(f"status_{adjustment.status.value}")

            reference = self._get(adjustment.reference_payslip_id)
            magnitude = abs(adjustment.amount)
            is_earnings = adjustment.adjustment_type == AdjustmentType.EARNINGS
            correction = self._issue(
                id_prefix=CORRECTION_PAYSLIP_ID_PREFIX,
                employee_id=adjustment.employee_id,
                period_start=reference.period_start,
                period_end=reference.period_end,
                gross_pay=magnitude if is_earnings else 0,
                allowances=0,
                deductions=StatutoryDeductions(),
                other_deductions=0 if is_earnings else magnitude,
                loan_deduction=0,
                issued_at=None,
                notes=f"Adjustment {adjustment.id}: {adjustment.reason}",
                adjustment_ref=adjustment.id,
            )
            self._adjustments.save(
                replace(
                    adjustment,
                    status=AdjustmentStatus.APPLIED,
                    applied_run_id=run_id,
                    applied_at=self._clock(),
                    correction_payslip_id=correction.id,
                )
            )

        log.info("adjustment %s applied in %s as %s", adjustment_id, run_id, correction.id)
        return TransitionResult.ok()

    def get(self, payslip_id: str) -> Optional[Payslip]:
        return self._payslips.get_by_id(payslip_id)

    def get_by_employee(self, employee_id: str) -> Sequence[Payslip]:
        return self._payslips.list_for_employee(employee_id)

    def get_pending(self) -> Sequence[Payslip]:
        return self._payslips.list_by_status(PayslipStatus.ISSUED)

    def get_payslips_by_status(self, status) -> Sequence[Payslip]:
        try:
            status = PayslipStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown payslip status: {status!r}")
        return self._payslips.list_by_status(status)

    def get_signed_payslips(self) -> Sequence[Payslip]:
        return [p for p in self._payslips.list_all() if p.is_signed]

    def get_unsigned_published(self) -> Sequence[Payslip]:
        return [p for p in self._payslips.list_by_status(PayslipStatus.PUBLISHED) if not p.is_signed]

    def get_run(self, issued_at: date) -> Optional[PayrollRun]:
        return self._runs.get_by_id(self._run_id(issued_at))

    def list_runs(self) -> Sequence[PayrollRun]:
        return self._runs.list_all()

    def list_adjustments(self, *, status=None) -> Sequence[PayrollAdjustment]:
        rows = self._adjustments.list_all()
        if status is None:
            return rows
        try:
            status = AdjustmentStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown adjustment status: {status!r}")
        return [a for a in rows if a.status == status]

    def _issue(
        self,
        *,
        id_prefix: str,
        employee_id: str,
        period_start: date,
        period_end: date,
        gross_pay,
        allowances,
        deductions: StatutoryDeductions,
        other_deductions,
        loan_deduction,
        issued_at: Optional[date],
        notes: Optional[str],
        adjustment_ref: Optional[str] = None,
    ) -> Payslip:
        employee_id = require_non_empty(employee_id, "Employee")
        if not isinstance(period_start, date) or not isinstance(period_end, date):
            raise ValidationError("Pay period dates are required")
        if period_end < period_start:
            raise ValidationError("Period end must be on or after period start")

        gross = require_non_negative_money(gross_pay, "Gross pay")
        allow = require_non_negative_money(allowances, "Allowances")
        sss = require_non_negative_money(deductions.sss, "SSS deduction")
        philhealth = require_non_negative_money(deductions.philhealth, "PhilHealth deduction")
        pagibig = require_non_negative_money(deductions.pagibig, "Pag-IBIG deduction")
        tax = require_non_negative_money(deductions.withholding_tax, "Withholding tax")
        other = require_non_negative_money(other_deductions, "Other deductions")
        loan = require_non_negative_money(loan_deduction, "Loan deduction")

        net = gross + allow - (sss + philhealth + pagibig + tax + other + loan)

        payslip = Payslip(
            id=self._ids.next_id(id_prefix),
            employee_id=employee_id,
            period_start=period_start,
            period_end=period_end,
            gross_pay=gross,
            allowances=allow,
            sss_deduction=sss,
            philhealth_deduction=philhealth,
            pagibig_deduction=pagibig,
            tax_deduction=tax,
            other_deductions=other,
            loan_deduction=loan,
            net_pay=net,
            status=PayslipStatus.ISSUED,
            issued_at=issued_at or self._clock().date(),
            notes=notes,
            adjustment_ref=adjustment_ref,
        )
        self._payslips.add(payslip)
        log.info("payslip %s issued to %s, net pay %s", payslip.id, employee_id, net)
        return payslip

    def _transition(
        self, payslip_id: str, action: str, apply: Callable[[Payslip], Union[Payslip, str]]
    ) -> TransitionResult:
        with self._locks.hold(payslip_id):
            current = self._get(payslip_id)
            updated = apply(current)
            if isinstance(updated, str):
                log.debug("payslip %s: %s ignored (%s)", payslip_id, action, updated)
                return TransitionResult.blocked(updated)
            self._payslips.replace(updated)

        log.info("payslip %s: %s (%s -> %s)", payslip_id, action, current.status.value, updated.status.value)
        return TransitionResult.ok()

    def _decide_adjustment(self, adjustment_id: str, approver_id: str, target: AdjustmentStatus) -> TransitionResult:
        approver_id = require_non_empty(approver_id, "Approver")
        with self._locks.hold(adjustment_id):
            adjustment = self._get_adjustment(adjustment_id)
            if adjustment.status != AdjustmentStatus.PENDING:
                return TransitionResult.blocked(f"status_{adjustment.status.value}")
            self._adjustments.save(
                replace(adjustment, status=target, approved_by=approver_id, approved_at=self._clock())
            )
        log.info("adjustment %s %s by %s", adjustment_id, target.value, approver_id)
        return TransitionResult.ok()

    def _ids_issued_on(self, issued_at: date) -> Tuple[str, ...]:
        return tuple(p.id for p in self._payslips.list_issued_on(issued_at))

    def _get(self, payslip_id: str) -> Payslip:
        payslip = self._payslips.get_by_id(payslip_id)
        if not payslip:
            raise NotFoundError(f"Payslip {payslip_id} does not exist")
        return payslip

    def _get_run(self, run_id: str) -> PayrollRun:
        run = self._runs.get_by_id(run_id)
        if not run:
            raise NotFoundError(f"Payroll run {run_id} does not exist")
        return run

    def _get_adjustment(self, adjustment_id: str) -> PayrollAdjustment:
        adjustment = self._adjustments.get_by_id(adjustment_id)
        if not adjustment:
            raise NotFoundError(f"Adjustment {adjustment_id} does not exist")
        return adjustment

    @staticmethod
    def _run_id(issued_at: date) -> str:
        if not isinstance(issued_at, date):
            raise ValidationError("Issuance date is required")
        return f"{PAYROLL_RUN_ID_PREFIX}-{issued_at.isoformat()}"
