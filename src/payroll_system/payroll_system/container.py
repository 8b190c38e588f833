from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .common.datetime_utils import now_local
from .common.ids import IdGenerator
from .common.locks import EntityLocks
from .core.constants import DEFAULT_DEDUCTION_CAP_PERCENT, ID_WIDTH
from .loans.memory_repository import InMemoryLoanRepository
from .loans.service import LoanService
from .payslips.memory_repository import (
    InMemoryAdjustmentRepository,
    InMemoryPayrollRunRepository,
    InMemoryPayslipRepository,
)
from .payslips.service import PayslipService
from .rules.memory_repository import InMemoryRuleSetRepository
from .rules.service import RuleSetService
from .timesheets.factory import RoundingStrategyFactory
from .timesheets.calculator.standard_calculator import StandardTimesheetCalculator
from .timesheets.memory_repository import InMemoryTimesheetRepository
from .timesheets.service import TimesheetService


@dataclass(frozen=True)
class Container:
    rule_sets_repo: InMemoryRuleSetRepository
    timesheets_repo: InMemoryTimesheetRepository
    payslips_repo: InMemoryPayslipRepository
    runs_repo: InMemoryPayrollRunRepository
    adjustments_repo: InMemoryAdjustmentRepository
    loans_repo: InMemoryLoanRepository

    rule_set_service: RuleSetService
    timesheet_service: TimesheetService
    payslip_service: PayslipService
    loan_service: LoanService


def build_container(
    *,
    default_cap_percent=DEFAULT_DEDUCTION_CAP_PERCENT,
    id_width: int = ID_WIDTH,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Wire the single authoritative in-process store and its services."""
    ids = IdGenerator(width=id_width)
    locks = EntityLocks()

    rule_sets_repo = InMemoryRuleSetRepository()
    timesheets_repo = InMemoryTimesheetRepository()
    payslips_repo = InMemoryPayslipRepository()
    runs_repo = InMemoryPayrollRunRepository()
    adjustments_repo = InMemoryAdjustmentRepository()
    loans_repo = InMemoryLoanRepository()

    rule_set_service = RuleSetService(rule_sets_repo, timesheets_repo, ids=ids, locks=locks)
    timesheet_service = TimesheetService(
        timesheets_repo,
        rule_set_service,
        calculator=StandardTimesheetCalculator(rounding=RoundingStrategyFactory()),
        ids=ids,
        locks=locks,
        clock=clock,
    )
    payslip_service = PayslipService(payslips_repo, runs_repo, adjustments_repo, ids=ids, locks=locks, clock=clock)
    loan_service = LoanService(
        loans_repo,
        ids=ids,
        locks=locks,
        clock=clock,
        default_cap_percent=default_cap_percent,
    )

    return Container(
        rule_sets_repo=rule_sets_repo,
        timesheets_repo=timesheets_repo,
        payslips_repo=payslips_repo,
        runs_repo=runs_repo,
        adjustments_repo=adjustments_repo,
        loans_repo=loans_repo,
        rule_set_service=rule_set_service,
        timesheet_service=timesheet_service,
        payslip_service=payslip_service,
        loan_service=loan_service,
    )
