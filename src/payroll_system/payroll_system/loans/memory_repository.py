from __future__ import annotations

from typing import Dict, Optional, Sequence

from .model import Loan
from .repository import LoanRepository


class InMemoryLoanRepository(LoanRepository):
    def __init__(self):
        self._by_id: Dict[str, Loan] = {}

    def get_by_id(self, loan_id: str) -> Optional[Loan]:
        return self._by_id.get(loan_id)

    def add(self, loan: Loan) -> None:
        if loan.id in self._by_id:
            raise KeyError(f"Loan {loan.id} already exists")
        self._by_id[loan.id] = loan

    def replace(self, loan: Loan) -> None:
        if loan.id not in self._by_id:
            raise KeyError(f"Loan {loan.id} does not exist")
        self._by_id[loan.id] = loan

    def list_all(self) -> Sequence[Loan]:
        return list(self._by_id.values())

    def list_for_employee(self, employee_id: str) -> Sequence[Loan]:
        return [loan for loan in self._by_id.values() if loan.employee_id == employee_id]
