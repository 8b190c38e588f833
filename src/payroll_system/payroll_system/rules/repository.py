from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRuleSet


class RuleSetRepository(Protocol):
    def get_by_id(self, rule_set_id: str) -> Optional[AttendanceRuleSet]:
        raise NotImplementedError

    def list_all(self) -> Sequence[AttendanceRuleSet]:
        raise NotImplementedError

    def save(self, rule_set: AttendanceRuleSet) -> None:
        raise NotImplementedError
