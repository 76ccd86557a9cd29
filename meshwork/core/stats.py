"""Operation statistics for mesh edits and triangulation requests."""
from __future__ import annotations

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class OpStats:
    attempts: int = 0
    success: int = 0
    fail: int = 0
    fallback_used: int = 0
    # Timing (seconds)
    time_total: float = 0.0
    time_max: float = 0.0
    time_min: float = 0.0  # 0 means uninitialized

    def record_time(self, duration: float) -> None:
        self.time_total += duration
        if duration > self.time_max:
            self.time_max = duration
        if self.time_min == 0.0 or duration < self.time_min:
            self.time_min = duration

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['success_rate'] = (self.success / self.attempts) if self.attempts else 0.0
        d['fallback_rate'] = (self.fallback_used / self.attempts) if self.attempts else 0.0
        d['time_avg'] = (self.time_total / self.attempts) if self.attempts else 0.0
        return d


class StatsRegistry:
    """Named OpStats counters, one per operation or algorithm."""

    def __init__(self):
        self._ops: Dict[str, OpStats] = defaultdict(OpStats)

    def __getitem__(self, name: str) -> OpStats:
        return self._ops[name]

    def __contains__(self, name: str) -> bool:
        return name in self._ops

    @contextmanager
    def track(self, name: str):
        """Count an attempt; success unless the body raises."""
        stats = self._ops[name]
        stats.attempts += 1
        t0 = time.perf_counter()
        try:
            yield stats
        except BaseException:
            stats.fail += 1
            raise
        else:
            stats.success += 1
        finally:
            stats.record_time(time.perf_counter() - t0)

    def summary(self) -> Dict[str, Dict[str, Any]]:
        return {k: v.to_dict() for k, v in self._ops.items()}

    def reset(self) -> None:
        self._ops.clear()


def format_stats_table(stats_dict) -> str:
    """Return a human readable multi-line table summarizing op stats."""
    if not stats_dict:
        return "<no stats>"
    header = ["op", "attempts", "succ", "fail", "fallback", "succ%", "avg_ms", "max_ms"]
    rows = []
    for op in sorted(stats_dict):
        s = stats_dict[op]
        rows.append([
            op, str(s['attempts']), str(s['success']), str(s['fail']), str(s['fallback_used']),
            f"{s['success_rate'] * 100.0:6.2f}", f"{s['time_avg'] * 1000.0:8.3f}",
            f"{s['time_max'] * 1000.0:8.3f}",
        ])
    col_w = [max(len(header[i]), *(len(r[i]) for r in rows)) for i in range(len(header))]

    def fmt(r):
        return " ".join(r[i].rjust(col_w[i]) for i in range(len(r)))
    lines = [fmt(header), "-" * (sum(col_w) + len(col_w) - 1)] + [fmt(r) for r in rows]
    return "\n".join(lines)


__all__ = ["OpStats", "StatsRegistry", "format_stats_table"]
