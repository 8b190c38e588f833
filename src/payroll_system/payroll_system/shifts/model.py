from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class Shift:
    """Domain entity: a work shift. An end at or before the start means it ends the next day."""

    shift_id: str
    shift_name: str
    start_time: time
    end_time: time
    break_minutes: int = 0
