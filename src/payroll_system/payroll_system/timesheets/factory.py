from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import RoundingPolicy
from .strategies.base import RoundingStrategy
from .strategies.nearest_strategy import NearestQuantumStrategy
from .strategies.none_strategy import NoRoundingStrategy


@dataclass
class RoundingStrategyFactory:
    """Factory Pattern: choose the rounding strategy for a rule set's policy."""

    def for_policy(self, policy: RoundingPolicy) -> RoundingStrategy:
        policy = RoundingPolicy(policy)
        if policy == RoundingPolicy.NEAREST_15:
            return NearestQuantumStrategy(15)
        if policy == RoundingPolicy.NEAREST_30:
            return NearestQuantumStrategy(30)
        return NoRoundingStrategy()
