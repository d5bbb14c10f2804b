"""
Capacity tracker. (worker, date) -> WorkloadEntry, mutated in place during one run.

Not thread-safe; one tracker per request.
"""

from datetime import date
from typing import Dict, Iterable, Optional, Tuple

from fieldservice.domain.constraints import AssignmentConstraints, CapacityDefaults
from fieldservice.domain.models import Capacity, Job, Worker, WorkloadEntry


def job_duration(job: Job, defaults: CapacityDefaults) -> int:
    return job.estimated_duration_minutes or defaults.job_duration_minutes


class CapacityTracker:
    def __init__(
        self,
        workers: Iterable[Worker],
        max_jobs_override: Optional[int] = None,
        defaults: CapacityDefaults = CapacityDefaults(),
    ):
        self._workers: Dict[str, Worker] = {w.worker_id: w for w in workers}
        self._max_jobs_override = max_jobs_override
        self._defaults = defaults
        self._load: Dict[Tuple[str, date], WorkloadEntry] = {}

    @classmethod
    def for_constraints(
        cls,
        workers: Iterable[Worker],
        constraints: AssignmentConstraints,
        defaults: CapacityDefaults = CapacityDefaults(),
    ) -> "CapacityTracker":
        return cls(workers, constraints.max_jobs_per_worker, defaults)

    def max_jobs(self, worker_id: str) -> int:
        worker = self._workers.get(worker_id)
        # 0 / None caen al siguiente nivel, igual que un perfil sin configurar
        return (
            self._max_jobs_override
            or (worker.max_daily_jobs if worker else None)
            or self._defaults.max_daily_jobs
        )

    def max_minutes(self, worker_id: str) -> int:
        worker = self._workers.get(worker_id)
        hours = (worker.max_daily_hours if worker else None) or self._defaults.max_daily_hours
        return int(hours * 60)

    def load(self, worker_id: str, day: date) -> WorkloadEntry:
        return self._load.get((worker_id, day), WorkloadEntry())

    def seed(self, existing_jobs: Iterable[Job], days: Iterable[date]) -> None:
        """Carga existente: solo workers conocidos y fechas dentro del rango."""
        in_range = set(days)
        for job in existing_jobs:
            if not job.assigned_to or not job.scheduled_start:
                continue
            if job.assigned_to not in self._workers:
                continue
            try:
                job_day = date.fromisoformat(job.scheduled_start[:10])
            except ValueError:
                continue
            if job_day not in in_range:
                continue
            self.record(job.assigned_to, job_day, job_duration(job, self._defaults))

    def record(self, worker_id: str, day: date, minutes: int) -> WorkloadEntry:
        entry = self._load.setdefault((worker_id, day), WorkloadEntry())
        entry.job_count += 1
        entry.minutes_used += minutes
        return entry

    def capacity(self, worker_id: str, day: date) -> Capacity:
        max_jobs = self.max_jobs(worker_id)
        max_minutes = self.max_minutes(worker_id)
        current = self.load(worker_id, day)
        return Capacity(
            can_take_more=current.job_count < max_jobs and current.minutes_used < max_minutes,
            remaining_jobs=max_jobs - current.job_count,
            remaining_minutes=max_minutes - current.minutes_used,
        )
