from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from payroll_system.common.ids import IdGenerator
from payroll_system.common.locks import EntityLocks
from payroll_system.core.enums import AdjustmentStatus, PayrollRunStatus, PayslipStatus
from payroll_system.core.exceptions import NotFoundError, ValidationError
from payroll_system.payslips.memory_repository import (
    InMemoryAdjustmentRepository,
    InMemoryPayrollRunRepository,
    InMemoryPayslipRepository,
)
from payroll_system.payslips.service import PayslipService

NOW = datetime(2026, 3, 15, 9, 0)
PAY_DAY = date(2026, 3, 15)


def make_service():
    return PayslipService(
        InMemoryPayslipRepository(),
        InMemoryPayrollRunRepository(),
        InMemoryAdjustmentRepository(),
        ids=IdGenerator(),
        locks=EntityLocks(),
        clock=lambda: NOW,
    )


def issue(svc, employee_id="E1", issued_at=PAY_DAY, gross=20000):
    return svc.issue(
        employee_id=employee_id,
        period_start=date(2026, 3, 1),
        period_end=date(2026, 3, 15),
        gross_pay=gross,
        issued_at=issued_at,
    )


def test_lock_run_snapshots_payslips_issued_that_day():
    svc = make_service()
    a = issue(svc, "E1")
    b = issue(svc, "E2")
    issue(svc, "E3", issued_at=date(2026, 3, 31))

    run = svc.lock_run(PAY_DAY, "ADMIN-1")
    assert run.id == "RUN-2026-03-15"
    assert run.payslip_ids == (a.id, b.id)
    assert run.locked
    assert run.status == PayrollRunStatus.LOCKED
    assert run.locked_by == "ADMIN-1"


def test_relocking_keeps_the_first_snapshot():
    svc = make_service()
    issue(svc, "E1")
    first = svc.lock_run(PAY_DAY, "ADMIN-1")
    issue(svc, "E2")

    again = svc.lock_run(PAY_DAY, "ADMIN-2")
    assert again == first
    assert len(svc.get_run(PAY_DAY).payslip_ids) == 1


def test_open_run_is_a_draft_until_locked():
    svc = make_service()
    issue(svc, "E1")
    draft = svc.open_run(PAY_DAY)
    assert draft.status == PayrollRunStatus.DRAFT
    assert not draft.locked
    assert svc.publish_run(PAY_DAY).reason == "status_draft"

    issue(svc, "E2")
    locked = svc.lock_run(PAY_DAY)
    assert locked.created_at == draft.created_at
    assert len(locked.payslip_ids) == 2


def test_publish_run_publishes_confirmed_payslips_only():
    svc = make_service()
    confirmed = issue(svc, "E1")
    left_behind = issue(svc, "E2")
    svc.confirm(confirmed.id)
    svc.lock_run(PAY_DAY)

    assert svc.publish_run(PAY_DAY).applied
    assert svc.get(confirmed.id).status == PayslipStatus.PUBLISHED
    assert svc.get(left_behind.id).status == PayslipStatus.ISSUED
    assert svc.get_run(PAY_DAY).status == PayrollRunStatus.PUBLISHED


def test_run_status_only_moves_forward():
    svc = make_service()
    issue(svc)
    svc.lock_run(PAY_DAY)

    assert svc.mark_run_paid(PAY_DAY).reason == "status_locked"
    svc.publish_run(PAY_DAY)
    assert svc.mark_run_paid(PAY_DAY).applied
    assert svc.publish_run(PAY_DAY).reason == "status_paid"
    assert svc.get_run(PAY_DAY).paid_at == NOW
    assert [r.id for r in svc.list_runs()] == ["RUN-2026-03-15"]


def test_unknown_run_raises():
    svc = make_service()
    with pytest.raises(NotFoundError):
        svc.publish_run(date(2020, 1, 1))
    assert svc.get_run(date(2020, 1, 1)) is None


def adjustment(svc, reference, amount, adjustment_type="earnings"):
    return svc.create_adjustment(
        payroll_run_id="RUN-2026-03-15",
        employee_id=reference.employee_id,
        adjustment_type=adjustment_type,
        reference_payslip_id=reference.id,
        amount=amount,
        reason="Missed overtime",
        created_by="HR-1",
    )


def test_earnings_adjustment_issues_correction_payslip():
    svc = make_service()
    reference = issue(svc)
    adj = adjustment(svc, reference, 1500)
    assert adj.status == AdjustmentStatus.PENDING

    assert svc.apply_adjustment(adj.id, "RUN-2026-03-31").reason == "status_pending"
    assert svc.approve_adjustment(adj.id, "MGR-1").applied
    assert svc.apply_adjustment(adj.id, "RUN-2026-03-31").applied

    applied = svc.list_adjustments(status="applied")[0]
    correction = svc.get(applied.correction_payslip_id)
    assert correction.id == "PS-ADJ-000001"
    assert correction.gross_pay == Decimal("1500.00")
    assert correction.net_pay == Decimal("1500.00")
    assert correction.adjustment_ref == adj.id
    assert correction.period_start == reference.period_start
    assert correction.notes == f"Adjustment {adj.id}: Missed overtime"
    assert applied.applied_run_id == "RUN-2026-03-31"
    assert svc.get(reference.id).gross_pay == Decimal("20000.00")


def test_deduction_adjustment_lowers_net_pay():
    svc = make_service()
    reference = issue(svc)
    adj = adjustment(svc, reference, -200, adjustment_type="deduction")
    svc.approve_adjustment(adj.id, "MGR-1")
    svc.apply_adjustment(adj.id, "RUN-2026-03-31")

    correction = svc.get(svc.list_adjustments()[0].correction_payslip_id)
    assert correction.other_deductions == Decimal("200.00")
    assert correction.net_pay == Decimal("-200.00")


def test_adjustment_decisions_are_final():
    svc = make_service()
    adj = adjustment(svc, issue(svc), 100)
    assert svc.reject_adjustment(adj.id, "MGR-1").applied
    assert svc.approve_adjustment(adj.id, "MGR-1").reason == "status_rejected"
    assert svc.apply_adjustment(adj.id, "RUN-X").reason == "status_rejected"
    assert svc.list_adjustments(status="pending") == []


def test_adjustment_validation():
    svc = make_service()
    reference = issue(svc)
    with pytest.raises(ValidationError):
        adjustment(svc, reference, 0)
    with pytest.raises(ValidationError):
        adjustment(svc, reference, 10, adjustment_type="bonus")
    with pytest.raises(NotFoundError):
        svc.create_adjustment(
            payroll_run_id="RUN-1",
            employee_id="E1",
            adjustment_type="earnings",
            reference_payslip_id="PS-404",
            amount=10,
            reason="x",
            created_by="HR-1",
        )
