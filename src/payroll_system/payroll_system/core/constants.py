"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

MINUTES_PER_DAY = 1440

DEFAULT_RULE_SET_ID = "RS-DEFAULT"
DEFAULT_STANDARD_HOURS_PER_DAY = 8
DEFAULT_GRACE_MINUTES = 10
DEFAULT_NIGHT_DIFF_START = "22:00"
DEFAULT_NIGHT_DIFF_END = "06:00"
DEFAULT_HOLIDAY_MULTIPLIER = 2.0

REGULAR_MULTIPLIER = 1.0
DEFAULT_OVERTIME_MULTIPLIER = 1.25
DEFAULT_NIGHT_DIFF_MULTIPLIER = 1.1

DEFAULT_DEDUCTION_CAP_PERCENT = Decimal("30")

ID_WIDTH = 6

PAYSLIP_ID_PREFIX = "PS"
CORRECTION_PAYSLIP_ID_PREFIX = "PS-ADJ"
ADJUSTMENT_ID_PREFIX = "ADJ"
PAYROLL_RUN_ID_PREFIX = "RUN"
TIMESHEET_ID_PREFIX = "TS"
SEGMENT_ID_PREFIX = "SEG"
RULE_SET_ID_PREFIX = "RS"
LOAN_ID_PREFIX = "LN"
LOAN_DEDUCTION_ID_PREFIX = "LD"
LOAN_HISTORY_ID_PREFIX = "LBH"
LOAN_SCHEDULE_ID_PREFIX = "LRS"
