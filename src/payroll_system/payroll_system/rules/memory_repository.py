from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence

from .model import DEFAULT_RULE_SET, AttendanceRuleSet
from .repository import RuleSetRepository


class InMemoryRuleSetRepository(RuleSetRepository):
    """Process-local rule set table, seeded with the default rule set."""

    def __init__(self, seed: Iterable[AttendanceRuleSet] = (DEFAULT_RULE_SET,)):
        self._by_id: Dict[str, AttendanceRuleSet] = {r.id: r for r in seed}

    def get_by_id(self, rule_set_id: str) -> Optional[AttendanceRuleSet]:
        return self._by_id.get(rule_set_id)

    def list_all(self) -> Sequence[AttendanceRuleSet]:
        return list(self._by_id.values())

    def save(self, rule_set: AttendanceRuleSet) -> None:
        self._by_id[rule_set.id] = rule_set
