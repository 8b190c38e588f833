from __future__ import annotations

import pytest

from payroll_system.core.enums import RoundingPolicy
from payroll_system.timesheets.factory import RoundingStrategyFactory
from payroll_system.timesheets.strategies.nearest_strategy import NearestQuantumStrategy
from payroll_system.timesheets.strategies.none_strategy import NoRoundingStrategy


def test_factory_returns_strategy_for_policy():
    f = RoundingStrategyFactory()
    assert isinstance(f.for_policy(RoundingPolicy.NONE), NoRoundingStrategy)
    assert isinstance(f.for_policy("nearest_15"), NearestQuantumStrategy)
    assert f.for_policy(RoundingPolicy.NEAREST_30).quantum == 30


def test_factory_rejects_unknown_policy():
    with pytest.raises(ValueError):
        RoundingStrategyFactory().for_policy("nearest_7")


@pytest.mark.parametrize(
    "minutes,expected",
    [(0, 0), (7, 0), (8, 15), (22, 15), (23, 30), (460, 465), (480, 480)],
)
def test_nearest_15(minutes, expected):
    assert NearestQuantumStrategy(15).round_minutes(minutes) == expected


def test_nearest_30_rounds_exact_half_up():
    s = NearestQuantumStrategy(30)
    assert s.round_minutes(14) == 0
    assert s.round_minutes(15) == 30
    assert s.round_minutes(44) == 30
    assert s.round_minutes(45) == 60


def test_no_rounding_keeps_minutes():
    assert NoRoundingStrategy().round_minutes(463) == 463
