from __future__ import annotations

from enum import Enum


class RoundingPolicy(str, Enum):
    """Quantization applied to worked minutes."""

    NONE = "none"
    NEAREST_15 = "nearest_15"
    NEAREST_30 = "nearest_30"


class TimesheetStatus(str, Enum):
    """Approval state of a computed timesheet."""

    COMPUTED = "computed"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class SegmentType(str, Enum):
    REGULAR = "regular"
    OVERTIME = "overtime"
    NIGHT_DIFF = "night_diff"


class PayslipStatus(str, Enum):
    """Payslip lifecycle. Order matters: statuses only move forward."""

    ISSUED = "issued"
    CONFIRMED = "confirmed"
    PUBLISHED = "published"
    PAID = "paid"
    ACKNOWLEDGED = "acknowledged"


class PayrollRunStatus(str, Enum):
    DRAFT = "draft"
    LOCKED = "locked"
    PUBLISHED = "published"
    PAID = "paid"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CHECK = "check"
    GCASH = "gcash"


class AdjustmentType(str, Enum):
    EARNINGS = "earnings"
    DEDUCTION = "deduction"


class AdjustmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    APPLIED = "applied"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    FROZEN = "frozen"
    SETTLED = "settled"
    CANCELLED = "cancelled"
