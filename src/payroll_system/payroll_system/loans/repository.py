from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Loan


class LoanRepository(Protocol):
    def get_by_id(self, loan_id: str) -> Optional[Loan]:
        raise NotImplementedError

    def add(self, loan: Loan) -> None:
        raise NotImplementedError

    def replace(self, loan: Loan) -> None:
        raise NotImplementedError

    def list_all(self) -> Sequence[Loan]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: str) -> Sequence[Loan]:
        raise NotImplementedError
