from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from .model import StatutoryDeductions


class DeductionCalculator(Protocol):
    """External collaborator: monthly gross -> statutory deductions.

    Its output is taken as-is; bracket tables live outside this package.
    """

    def compute(self, monthly_gross: Decimal) -> StatutoryDeductions:
        raise NotImplementedError
