from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict


@dataclass(frozen=True)
class TransferStats:
    """Timing and diagnostic data of one completed transport call."""

    method: str
    effective_uri: str
    status_code: int
    reason_phrase: str
    transfer_time: float


STAT_ACCESSORS: Dict[str, Callable[[TransferStats], Any]] = {
    "transfer-time": lambda stats: stats.transfer_time,
    "effective-uri": lambda stats: stats.effective_uri,
    "status-code": lambda stats: stats.status_code,
    "reason-phrase": lambda stats: stats.reason_phrase,
    "method": lambda stats: stats.method,
}


def read_stat(stats: TransferStats, name: str) -> Any:
    """Return a statistic by its dashed name; KeyError for unsupported names."""

    return STAT_ACCESSORS[name.strip().lower()](stats)


__all__ = ["TransferStats", "STAT_ACCESSORS", "read_stat"]
