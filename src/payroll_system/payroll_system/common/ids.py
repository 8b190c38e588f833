from __future__ import annotations

import itertools
import threading
from typing import Dict, Iterator

from ..core.constants import ID_WIDTH


class IdGenerator:
    """Issues monotonic ids per prefix: ``PS-000001``, ``PS-000002``, ...

    One generator is shared by the whole container so that ids stay unique
    across repositories and their order reflects issuance order.
    """

    def __init__(self, *, width: int = ID_WIDTH):
        self._width = int(width)
        self._counters: Dict[str, Iterator[int]] = {}
        self._lock = threading.Lock()

    def next_id(self, prefix: str) -> str:
        with self._lock:
            counter = self._counters.setdefault(prefix, itertools.count(1))
            return f"{prefix}-{next(counter):0{self._width}d}"
