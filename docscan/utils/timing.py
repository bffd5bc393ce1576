"""Per-stage wall-clock timing for one scan."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Dict, Iterator


class StageTimers:
    """Elapsed milliseconds for each stage of a single document scan.

    Stages are recorded in the order they start, so ``event_fields()`` lists
    only the stages that actually ran (a scan that fails at OCR carries no
    ``extraction_ms``).
    """

    def __init__(self) -> None:
        self._elapsed: Dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            self._elapsed[name] = self._elapsed.get(name, 0.0) + time.perf_counter() - started

    def elapsed_ms(self, name: str) -> int:
        return int(round(self._elapsed.get(name, 0.0) * 1000))

    def event_fields(self) -> Dict[str, int]:
        """``{"<stage>_ms": ms, ..., "total_ms": ms}`` for attaching to scan events."""
        fields = {f"{name}_ms": self.elapsed_ms(name) for name in self._elapsed}
        fields["total_ms"] = sum(fields.values())
        return fields
