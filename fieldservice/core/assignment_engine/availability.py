"""
Availability resolver. Time off first, then weekly rules; no rule means available.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Tuple

from fieldservice.domain.models import AvailabilityRule, TimeOffRequest


def day_of_week(day: date) -> int:
    """0 = Sunday .. 6 = Saturday, the convention team_availability stores."""
    return (day.weekday() + 1) % 7


class AvailabilityResolver:
    def __init__(
        self,
        time_off: Iterable[TimeOffRequest],
        rules: Iterable[AvailabilityRule],
    ):
        self._time_off: Dict[str, List[TimeOffRequest]] = defaultdict(list)
        for req in time_off:
            self._time_off[req.worker_id].append(req)
        self._rules: Dict[Tuple[str, int], List[AvailabilityRule]] = defaultdict(list)
        for rule in rules:
            self._rules[(rule.worker_id, rule.day_of_week)].append(rule)

    def is_on_time_off(self, worker_id: str, day: date) -> bool:
        return any(req.covers(day) for req in self._time_off.get(worker_id, ()))

    def rules_for(self, worker_id: str, day: date) -> List[AvailabilityRule]:
        return list(self._rules.get((worker_id, day_of_week(day)), ()))

    def is_available(self, worker_id: str, day: date) -> bool:
        if self.is_on_time_off(worker_id, day):
            return False
        rules = self.rules_for(worker_id, day)
        if rules:
            return any(r.is_available for r in rules)
        return True
