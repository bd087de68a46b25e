"""
Hour-of-day diagnostics.

Running mean of percent change per hour. Kept for analysis only; nothing
on the decision path reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List


@dataclass
class HourlyStat:
    mean_change: float = 0.0
    count: int = 0


class HourlyStats:
    def __init__(self) -> None:
        self._stats: List[HourlyStat] = [HourlyStat() for _ in range(24)]

    def record(self, timestamp: datetime, pct_change: float) -> HourlyStat:
        stat = self._stats[timestamp.hour]
        stat.mean_change = (stat.mean_change * stat.count + pct_change) / (stat.count + 1)
        stat.count += 1
        return stat

    def get(self, hour: int) -> HourlyStat:
        return self._stats[hour]

    def observed(self) -> Dict[int, HourlyStat]:
        return {hour: stat for hour, stat in enumerate(self._stats) if stat.count > 0}

    def to_dict(self) -> Dict[str, Any]:
        return {str(hour): [stat.mean_change, stat.count] for hour, stat in self.observed().items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HourlyStats":
        stats = cls()
        for hour, (mean_change, count) in data.items():
            stats._stats[int(hour)] = HourlyStat(float(mean_change), int(count))
        return stats
