"""Timing and outcome of one startup sequence.

Every sequence logs a single machine-readable line, so a failed boot can be
diagnosed from the logs alone:

    STARTUP SUMMARY {"app": "todo", "sequence": "start", "status": "OK", ...}
"""
from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class PhaseRecord:
    """One timed phase; ``error`` names the exception class that ended it, if any."""

    name: str
    duration_ms: float
    error: Optional[str] = None


class StartupContext:
    """Collects phase records and attributes for one sequence."""

    def __init__(self, app_name: str, sequence: str) -> None:
        self.app_name = app_name
        self.sequence = sequence
        self._began = time.perf_counter()
        self.phases: List[PhaseRecord] = []
        self.attributes: Dict[str, Any] = {}

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        began = time.perf_counter()
        error: Optional[str] = None
        try:
            yield
        except BaseException as e:  # noqa: BLE001
            error = type(e).__name__
            raise
        finally:
            self.phases.append(PhaseRecord(name, _elapsed_ms(began), error))

    def attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    @property
    def failed(self) -> bool:
        return any(record.error for record in self.phases)

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "app": self.app_name,
            "sequence": self.sequence,
            "status": "FAILED" if self.failed else "OK",
            "total_time_ms": _elapsed_ms(self._began),
            "phases": [asdict(record) for record in self.phases],
            "attributes": self.attributes,
        }

    def emit_summary(self, log: logging.Logger) -> None:
        level = logging.ERROR if self.failed else logging.INFO
        log.log(level, "STARTUP SUMMARY %s", json.dumps(self.summary_dict(), sort_keys=True, default=str))


def _elapsed_ms(began: float) -> float:
    return round((time.perf_counter() - began) * 1000, 2)
