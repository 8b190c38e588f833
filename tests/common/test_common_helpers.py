from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from payroll_system.common.datetime_utils import add_months, parse_clock_minutes, parse_iso_date
from payroll_system.common.ids import IdGenerator
from payroll_system.common.money import floor_money, round_half_up, to_money
from payroll_system.common.serialization import to_jsonable
from payroll_system.core.enums import PayslipStatus
from payroll_system.core.exceptions import ValidationError
from payroll_system.core.results import TransitionResult


def test_ids_are_monotonic_per_prefix():
    ids = IdGenerator(width=6)
    assert ids.next_id("TS") == "TS-000001"
    assert ids.next_id("TS") == "TS-000002"
    assert ids.next_id("PS") == "PS-000001"


def test_id_width_is_configurable():
    assert IdGenerator(width=3).next_id("LN") == "LN-001"


def test_to_money_rounds_half_up_to_centavos():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(7) == Decimal("7.00")
    assert to_money(0.1) == Decimal("0.10")


@pytest.mark.parametrize("bad", [None, True, "abc", "NaN", "Infinity"])
def test_to_money_rejects_non_numbers(bad):
    with pytest.raises(ValidationError):
        to_money(bad, "Amount")


def test_floor_money_never_rounds_up():
    assert floor_money(Decimal("999.999")) == Decimal("999.99")
    assert round_half_up(Decimal("2.5")) == Decimal("3")


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2026, 11, 15), 3) == date(2027, 2, 15)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)


def test_parse_clock_minutes():
    assert parse_clock_minutes("06:30") == 390
    assert parse_clock_minutes("00:00") == 0
    with pytest.raises(ValidationError):
        parse_clock_minutes("25:00", "Check-in")
    with pytest.raises(ValidationError):
        parse_clock_minutes(None, "Check-in")


def test_parse_iso_date():
    assert parse_iso_date("2026-03-02") == date(2026, 3, 2)
    with pytest.raises(ValidationError):
        parse_iso_date("02/03/2026")


def test_to_jsonable_flattens_domain_values():
    payload = {
        "status": PayslipStatus.PAID,
        "amount": Decimal("12.50"),
        "when": datetime(2026, 3, 2, 8, 0),
        "result": TransitionResult.blocked("not_paid"),
        "rows": (date(2026, 3, 2),),
    }
    assert to_jsonable(payload) == {
        "status": "paid",
        "amount": "12.50",
        "when": "2026-03-02T08:00:00",
        "result": {"applied": False, "reason": "not_paid"},
        "rows": ["2026-03-02"],
    }
