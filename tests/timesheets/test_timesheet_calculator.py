from __future__ import annotations

import itertools
from dataclasses import replace

import pytest

from payroll_system.core.enums import RoundingPolicy
from payroll_system.core.exceptions import ValidationError
from payroll_system.rules.model import DEFAULT_RULE_SET
from payroll_system.timesheets.calculator.standard_calculator import (
    StandardTimesheetCalculator,
    night_diff_minutes,
)
from payroll_system.timesheets.model import ClockPair


def compute(check_in, check_out, shift_start="08:00", shift_end="17:00", break_minutes=60, rule_set=None):
    pair = ClockPair(
        check_in=check_in,
        check_out=check_out,
        shift_start=shift_start,
        shift_end=shift_end,
        break_minutes=break_minutes,
    )
    return StandardTimesheetCalculator().compute(rule_set or DEFAULT_RULE_SET, pair)


def test_late_beyond_grace_counts_full_minutes():
    f = compute("08:20", "17:00")
    assert f.late_minutes == 20
    assert f.raw_worked_minutes == 460
    assert f.worked_minutes == 465
    assert f.regular_minutes == 465
    assert f.overtime_minutes == 0
    assert f.undertime_minutes == 0


def test_late_within_grace_is_forgiven():
    assert compute("08:08", "17:00").late_minutes == 0
    assert compute("08:10", "17:00").late_minutes == 0
    assert compute("08:11", "17:00").late_minutes == 11


def test_overtime_beyond_standard_day():
    f = compute("08:00", "19:00")
    assert f.worked_minutes == 600
    assert f.regular_minutes == 480
    assert f.overtime_minutes == 120
    assert f.night_diff_minutes == 0


def test_undertime_when_leaving_early():
    f = compute("08:00", "16:00")
    assert f.undertime_minutes == 60
    assert f.regular_minutes == 420


def test_overnight_shift_is_all_night_differential():
    f = compute("22:00", "06:00", shift_start="22:00", shift_end="06:00", break_minutes=0)
    assert f.check_out_minute == 1800
    assert f.worked_minutes == 480
    assert f.regular_minutes == 480
    assert f.night_diff_minutes == 480
    assert f.late_minutes == 0


def test_overnight_undertime():
    f = compute("22:00", "05:00", shift_start="22:00", shift_end="06:00", break_minutes=0)
    assert f.undertime_minutes == 60


def test_evening_overlap_with_night_window():
    f = compute("14:00", "23:00", shift_start="14:00", shift_end="23:00")
    assert f.night_diff_minutes == 60


def test_rounding_follows_rule_set_policy():
    no_rounding = replace(DEFAULT_RULE_SET, rounding_policy=RoundingPolicy.NONE)
    assert compute("08:20", "17:00", rule_set=no_rounding).worked_minutes == 460


def test_no_night_window_means_no_night_minutes():
    day_only = replace(DEFAULT_RULE_SET, night_diff_start=None, night_diff_end=None)
    f = compute("22:00", "06:00", shift_start="22:00", shift_end="06:00", break_minutes=0, rule_set=day_only)
    assert f.night_diff_minutes == 0


def test_break_longer_than_shift_clamps_to_zero():
    f = compute("08:00", "08:30", break_minutes=60)
    assert f.worked_minutes == 0
    assert f.regular_minutes == 0


def test_night_diff_never_exceeds_worked_minutes():
    f = compute("22:00", "06:00", shift_start="22:00", shift_end="06:00", break_minutes=120)
    assert f.worked_minutes == 360
    assert f.night_diff_minutes == 360


@pytest.mark.parametrize(
    "check_in,check_out,start,end,expected",
    [
        (1320, 1800, 1320, 360, 480),
        (480, 1020, 1320, 360, 0),
        (1200, 1500, 1320, 360, 180),
        (1320, 1800, 0, 240, 240),
        (1320, 1800, 600, 600, 0),
    ],
)
def test_night_diff_minutes(check_in, check_out, start, end, expected):
    assert night_diff_minutes(check_in, check_out, start, end) == expected


def test_invalid_clock_times_raise():
    with pytest.raises(ValidationError):
        compute("8am", "17:00")
    with pytest.raises(ValidationError):
        compute("08:00", "17:00", break_minutes=-5)


def test_early_arrival_on_overnight_shift():
    f = compute("21:50", "06:10", shift_start="22:00", shift_end="06:00", break_minutes=0)
    assert f.raw_worked_minutes == 500
    assert f.worked_minutes == 495
    assert f.regular_minutes == 480
    assert f.overtime_minutes == 15
    assert f.night_diff_minutes == 480
    assert f.late_minutes == 0
    assert f.undertime_minutes == 0


CHECK_INS = ["05:30", "07:45", "08:25", "13:00", "21:50", "22:00", "23:40"]
CHECK_OUTS = ["00:30", "06:10", "12:00", "17:00", "19:30", "22:15"]
SHIFTS = [("08:00", "17:00", 60), ("22:00", "06:00", 0), ("14:00", "23:00", 30)]
POLICIES = [RoundingPolicy.NONE, RoundingPolicy.NEAREST_15, RoundingPolicy.NEAREST_30]


@pytest.mark.parametrize(
    "check_in,check_out,shift,policy",
    list(itertools.product(CHECK_INS, CHECK_OUTS, SHIFTS, POLICIES)),
)
def test_figures_stay_consistent(check_in, check_out, shift, policy):
    shift_start, shift_end, break_minutes = shift
    rule_set = replace(DEFAULT_RULE_SET, rounding_policy=policy)
    f = compute(check_in, check_out, shift_start, shift_end, break_minutes, rule_set=rule_set)

    assert f.regular_minutes >= 0
    assert f.overtime_minutes >= 0
    assert f.regular_minutes + f.overtime_minutes == f.worked_minutes
    assert f.late_minutes >= 0
    assert f.undertime_minutes >= 0
    assert 0 <= f.night_diff_minutes <= min(f.worked_minutes, 480)
