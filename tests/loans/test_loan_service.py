from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from payroll_system.common.ids import IdGenerator
from payroll_system.common.locks import EntityLocks
from payroll_system.core.enums import LoanStatus
from payroll_system.core.exceptions import NotFoundError, ValidationError
from payroll_system.loans.memory_repository import InMemoryLoanRepository
from payroll_system.loans.service import SKIP_FROZEN, SKIP_INSUFFICIENT_NET_PAY, LoanService


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_service(clock=None, **kwargs):
    return LoanService(
        InMemoryLoanRepository(),
        ids=IdGenerator(),
        locks=EntityLocks(),
        clock=clock or FakeClock(datetime(2026, 1, 31, 9, 0)),
        **kwargs,
    )


def new_loan(svc, employee_id="E1", amount=6000, monthly=2000, **kwargs):
    return svc.create_loan(
        employee_id=employee_id,
        loan_type="salary",
        amount=amount,
        monthly_deduction=monthly,
        **kwargs,
    )


def test_create_loan():
    svc = make_service()
    loan = new_loan(svc, approved_by="HR-1")
    assert loan.id == "LN-000001"
    assert loan.status == LoanStatus.ACTIVE
    assert loan.remaining_balance == Decimal("6000.00")
    assert loan.deduction_cap_percent == Decimal("30")
    assert loan.created_at == date(2026, 1, 31)


def test_default_cap_is_configurable():
    svc = make_service(default_cap_percent="25")
    assert new_loan(svc).deduction_cap_percent == Decimal("25")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"amount": 0},
        {"monthly": -5},
        {"deduction_cap_percent": 0},
        {"deduction_cap_percent": 150},
        {"employee_id": ""},
    ],
)
def test_create_loan_validation(kwargs):
    svc = make_service()
    with pytest.raises(ValidationError):
        new_loan(svc, **kwargs)


def test_three_deductions_settle_the_loan():
    svc = make_service()
    loan = new_loan(svc)
    for n in range(1, 4):
        outcome = svc.record_deduction(loan.id, f"PS-00000{n}", 2000)
        assert outcome.deducted == Decimal("2000.00")
        assert not outcome.skipped

    settled = svc.get(loan.id)
    assert settled.status == LoanStatus.SETTLED
    assert settled.remaining_balance == Decimal("0.00")
    assert len(settled.deductions) == 3
    assert [h.new_balance for h in settled.balance_history] == [Decimal("4000"), Decimal("2000"), Decimal("0")]
    assert settled.total_deducted == Decimal("6000.00")

    after = svc.record_deduction(loan.id, "PS-000004", 2000)
    assert after.skipped
    assert after.reason == "settled"
    assert len(svc.get(loan.id).deductions) == 3


def test_over_deduction_is_clamped_to_balance():
    svc = make_service()
    loan = new_loan(svc, amount=1000, monthly=500)
    outcome = svc.record_deduction(loan.id, "PS-000001", 1500)

    assert outcome.deducted == Decimal("1000.00")
    stored = svc.get(loan.id)
    assert stored.remaining_balance == Decimal("0.00")
    assert stored.status == LoanStatus.SETTLED
    assert stored.deductions[0].amount == Decimal("1000.00")


def test_negative_deduction_is_rejected():
    svc = make_service()
    loan = new_loan(svc)
    with pytest.raises(ValidationError):
        svc.record_deduction(loan.id, "PS-000001", -1)


def test_unknown_loan_raises():
    svc = make_service()
    with pytest.raises(NotFoundError):
        svc.record_deduction("LN-404", "PS-000001", 10)
    with pytest.raises(NotFoundError):
        svc.freeze("LN-404")


def test_capped_deduction_never_exceeds_share_of_net_pay():
    svc = make_service()
    loan = new_loan(svc, amount=10000, monthly=3000)

    assert svc.compute_capped_deduction(loan.id, 5000) == Decimal("1500.00")
    assert svc.compute_capped_deduction(loan.id, 20000) == Decimal("3000.00")
    assert svc.compute_capped_deduction(loan.id, "3333.33") == Decimal("999.99")

    outcome = svc.record_capped_deduction(loan.id, "PS-000001", 5000)
    assert outcome.deducted == Decimal("1500.00")
    assert svc.get(loan.id).remaining_balance == Decimal("8500.00")


def test_capped_deduction_respects_remaining_balance():
    svc = make_service()
    loan = new_loan(svc, amount=1000, monthly=3000)
    outcome = svc.record_capped_deduction(loan.id, "PS-000001", 50000)
    assert outcome.deducted == Decimal("1000.00")
    assert svc.get(loan.id).status == LoanStatus.SETTLED


def test_frozen_loan_is_skipped():
    svc = make_service()
    loan = new_loan(svc)
    assert svc.freeze(loan.id).applied

    outcome = svc.record_capped_deduction(loan.id, "PS-000001", 20000)
    assert outcome.skipped
    assert outcome.reason == SKIP_FROZEN
    assert outcome.deducted == Decimal("0")
    assert svc.compute_capped_deduction(loan.id, 20000) == Decimal("0")
    assert svc.get(loan.id).remaining_balance == Decimal("6000.00")


@pytest.mark.parametrize("net_pay", [0, -100, "0.01"])
def test_insufficient_net_pay_is_carried_forward(net_pay):
    svc = make_service()
    loan = new_loan(svc)
    outcome = svc.record_capped_deduction(loan.id, "PS-000001", net_pay)
    assert outcome.skipped
    assert outcome.reason == SKIP_INSUFFICIENT_NET_PAY
    assert svc.get(loan.id).deductions == ()


def test_unfreeze_is_a_no_op_on_active_loans():
    svc = make_service()
    loan = new_loan(svc)
    assert not svc.unfreeze(loan.id).applied
    assert svc.freeze(loan.id).applied
    assert not svc.freeze(loan.id).applied
    assert svc.unfreeze(loan.id).applied
    assert not svc.unfreeze(loan.id).applied
    assert svc.get(loan.id).status == LoanStatus.ACTIVE


def test_cancelled_loan_keeps_its_history():
    svc = make_service()
    loan = new_loan(svc)
    svc.record_deduction(loan.id, "PS-000001", 2000)
    assert svc.cancel(loan.id).applied

    outcome = svc.record_deduction(loan.id, "PS-000002", 2000)
    assert outcome.reason == "cancelled"
    stored = svc.get(loan.id)
    assert stored.remaining_balance == Decimal("4000.00")
    assert len(stored.balance_history) == 1
    assert svc.update_terms(loan.id, monthly_deduction=100).reason == "cancelled"
    assert not svc.cancel(loan.id).applied


def test_update_terms():
    svc = make_service()
    loan = new_loan(svc)
    assert svc.update_terms(loan.id, monthly_deduction=1500, deduction_cap_percent=20, remarks="Restructured").applied
    stored = svc.get(loan.id)
    assert stored.monthly_deduction == Decimal("1500.00")
    assert stored.deduction_cap_percent == Decimal("20.00")
    assert stored.remarks == "Restructured"
    assert stored.remaining_balance == Decimal("6000.00")


def test_schedule_ends_with_the_remainder():
    svc = make_service()
    loan = new_loan(svc, amount=5000, monthly=2000)
    schedule = svc.generate_schedule(loan.id)

    assert [s.amount for s in schedule] == [Decimal("2000"), Decimal("2000"), Decimal("1000")]
    assert [s.due_date for s in schedule] == [date(2026, 2, 28), date(2026, 3, 31), date(2026, 4, 30)]
    assert sum(s.amount for s in schedule) == loan.amount
    assert svc.get_schedule(loan.id) == schedule


def test_balance_history_is_append_only():
    svc = make_service()
    loan = new_loan(svc)
    svc.record_deduction(loan.id, "PS-000001", 500)
    svc.record_deduction(loan.id, "PS-000002", 700)

    history = svc.get_balance_history(loan.id)
    assert [(h.previous_balance, h.deduction_amount, h.new_balance) for h in history] == [
        (Decimal("6000"), Decimal("500"), Decimal("5500")),
        (Decimal("5500"), Decimal("700"), Decimal("4800")),
    ]
    assert [h.payslip_id for h in history] == ["PS-000001", "PS-000002"]


def test_all_deductions_most_recent_first():
    clock = FakeClock(datetime(2026, 1, 31, 9, 0))
    svc = make_service(clock)
    first = new_loan(svc, employee_id="E1")
    second = new_loan(svc, employee_id="E2")

    svc.record_deduction(first.id, "PS-000001", 100)
    clock.advance(days=1)
    svc.record_deduction(second.id, "PS-000002", 200)
    clock.advance(days=1)
    svc.record_deduction(first.id, "PS-000003", 300)

    rows = svc.get_all_deductions()
    assert [r.payslip_id for r in rows] == ["PS-000003", "PS-000002", "PS-000001"]
    assert [r.employee_id for r in rows] == ["E1", "E2", "E1"]


def test_active_loans_by_employee():
    svc = make_service()
    active = new_loan(svc)
    frozen = new_loan(svc)
    new_loan(svc, employee_id="E2")
    svc.freeze(frozen.id)

    assert [loan.id for loan in svc.get_active_by_employee("E1")] == [active.id]
    assert len(svc.get_by_employee("E1")) == 2
