from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import fields, replace
from typing import Iterator, Optional, Sequence

from ..common.datetime_utils import parse_clock_minutes
from ..common.ids import IdGenerator
from ..common.locks import EntityLocks
from ..common.validators import require_non_empty, require_non_negative_int
from ..core.constants import RULE_SET_ID_PREFIX
from ..core.enums import RoundingPolicy
from ..core.exceptions import NotFoundError, ValidationError
from ..timesheets.repository import TimesheetRepository
from .model import DEFAULT_RULE_SET, AttendanceRuleSet
from .repository import RuleSetRepository

log = logging.getLogger(__name__)

_EDITABLE_FIELDS = {f.name for f in fields(AttendanceRuleSet)} - {"id"}


class RuleSetService:
    """Owns attendance rule sets.

    A rule set is frozen once a timesheet has been computed against it, so
    past timesheets always agree with the rules they reference.
    """

    def __init__(
        self,
        rule_sets: RuleSetRepository,
        timesheets: TimesheetRepository,
        *,
        ids: Optional[IdGenerator] = None,
        locks: Optional[EntityLocks] = None,
        default: AttendanceRuleSet = DEFAULT_RULE_SET,
    ):
        self._rule_sets = rule_sets
        self._timesheets = timesheets
        self._ids = ids or IdGenerator()
        self._locks = locks or EntityLocks()
        self._default = default

    def add_rule_set(self, *, name: str, **options) -> AttendanceRuleSet:
        unknown = set(options) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown rule set fields: {', '.join(sorted(unknown))}")

        rule_set = AttendanceRuleSet(id=self._ids.next_id(RULE_SET_ID_PREFIX), name=name, **options)
        rule_set = self._validated(rule_set)
        self._rule_sets.save(rule_set)
        log.info("rule set %s created (%s)", rule_set.id, rule_set.name)
        return rule_set

    def update_rule_set(self, rule_set_id: str, **patch) -> AttendanceRuleSet:
        unknown = set(patch) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown rule set fields: {', '.join(sorted(unknown))}")

        with self._locks.hold(rule_set_id):
            current = self._rule_sets.get_by_id(rule_set_id)
            if not current:
                raise NotFoundError(f"Rule set {rule_set_id} does not exist")
            if rule_set_id == self._default.id:
                raise ValidationError(f"Rule set {rule_set_id} is the fallback rule set and cannot be changed")
            if self.is_referenced(rule_set_id):
                raise ValidationError(
                    f"Rule set {rule_set_id} is referenced by computed timesheets and cannot be changed"
                )

            updated = self._validated(replace(current, **patch))
            self._rule_sets.save(updated)
            log.info("rule set %s updated: %s", rule_set_id, ", ".join(sorted(patch)))
            return updated

    def get_rule_set(self, rule_set_id: str) -> Optional[AttendanceRuleSet]:
        return self._rule_sets.get_by_id(rule_set_id)

    def list_rule_sets(self) -> Sequence[AttendanceRuleSet]:
        return self._rule_sets.list_all()

    def resolve(self, rule_set_id: Optional[str]) -> AttendanceRuleSet:
        """Return the rule set, or the default one when the id is unknown.

        Attendance computation must never be blocked by a configuration gap.
        """
        rule_set = self._rule_sets.get_by_id(rule_set_id) if rule_set_id else None
        if rule_set:
            return rule_set
        log.warning("rule set %r not found, falling back to %s", rule_set_id, self._default.id)
        return self._rule_sets.get_by_id(self._default.id) or self._default

    @contextmanager
    def pinned(self, rule_set_id: Optional[str]) -> Iterator[AttendanceRuleSet]:
        """Resolve a rule set and hold it unchanged until the block exits."""
        resolved = self.resolve(rule_set_id)
        with self._locks.hold(resolved.id):
            yield self._rule_sets.get_by_id(resolved.id) or resolved

    def is_referenced(self, rule_set_id: str) -> bool:
        return self._timesheets.exists_for_rule_set(rule_set_id)

    @staticmethod
    def _validated(rule_set: AttendanceRuleSet) -> AttendanceRuleSet:
        name = require_non_empty(rule_set.name, "Rule set name")

        try:
            policy = RoundingPolicy(rule_set.rounding_policy)
        except ValueError:
            raise ValidationError(f"Unknown rounding policy: {rule_set.rounding_policy!r}")

        try:
            hours = float(rule_set.standard_hours_per_day)
        except (TypeError, ValueError):
            raise ValidationError("Standard hours per day must be a number")
        if hours <= 0 or hours > 24:
            raise ValidationError("Standard hours per day must be between 0 and 24")
        grace = require_non_negative_int(rule_set.grace_minutes, "Grace minutes")

        if bool(rule_set.night_diff_start) != bool(rule_set.night_diff_end):
            raise ValidationError("Night differential window needs both a start and an end")
        if rule_set.has_night_window:
            parse_clock_minutes(rule_set.night_diff_start, "Night differential start")
            parse_clock_minutes(rule_set.night_diff_end, "Night differential end")

        for label, value in (
            ("Holiday multiplier", rule_set.holiday_multiplier),
            ("Overtime multiplier", rule_set.overtime_multiplier),
            ("Night differential multiplier", rule_set.night_diff_multiplier),
        ):
            try:
                multiplier = float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{label} must be a number")
            if multiplier < 1:
                raise ValidationError(f"{label} cannot be below 1.0")

        return replace(rule_set, name=name, rounding_policy=policy, grace_minutes=grace)
