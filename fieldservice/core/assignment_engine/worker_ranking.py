"""
Single-job worker ranking. Fit score 0-1 per worker for one job on one date.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence

from fieldservice.core.assignment_engine.availability import AvailabilityResolver
from fieldservice.core.assignment_engine.capacity import job_duration
from fieldservice.core.assignment_engine.geo import haversine_miles
from fieldservice.domain.constraints import CapacityDefaults, FitWeights
from fieldservice.domain.models import Job, Worker, WorkerFit


def distance_score(worker: Worker, job: Job, weights: FitWeights) -> float:
    """1 en la misma ubicación, 0 a partir de max_distance_miles."""
    if not (worker.has_home and job.has_location):
        return weights.unknown_distance_score
    miles = haversine_miles(
        worker.home_latitude, worker.home_longitude, job.latitude, job.longitude
    )
    return max(0.0, 1.0 - miles / weights.max_distance_miles)


def rank_workers(
    job: Job,
    workers: Sequence[Worker],
    day: date,
    resolver: AvailabilityResolver,
    existing_jobs: Dict[str, int],
    existing_minutes: Dict[str, int],
    preferred_worker_id: Optional[str] = None,
    weights: FitWeights = FitWeights(),
    defaults: CapacityDefaults = CapacityDefaults(),
) -> List[WorkerFit]:
    """
    Filtra time off, disponibilidad semanal y capacidad; puntúa el resto.
    fit = min(1, distance*0.4 + capacity*0.5 + preferred + 0.1). Orden descendente, estable.
    """
    duration = job_duration(job, defaults)
    ranked: List[WorkerFit] = []
    for worker in workers:
        if not resolver.is_available(worker.worker_id, day):
            continue
        count = existing_jobs.get(worker.worker_id, 0)
        minutes = existing_minutes.get(worker.worker_id, 0)
        max_jobs = worker.max_daily_jobs or defaults.max_daily_jobs
        max_minutes = int((worker.max_daily_hours or defaults.max_daily_hours) * 60)
        if count >= max_jobs:
            continue
        if minutes + duration > max_minutes:
            continue

        capacity = 1.0 - count / max_jobs
        dist = distance_score(worker, job, weights)
        boost = weights.preferred_boost if worker.worker_id == preferred_worker_id else 0.0
        fit = dist * weights.distance + capacity * weights.capacity + boost + weights.floor
        ranked.append(
            WorkerFit(
                worker=worker,
                fit_score=min(1.0, fit),
                existing_jobs=count,
                max_daily_jobs=max_jobs,
                available_minutes=max_minutes - minutes,
                distance_score=dist,
                capacity_score=capacity,
            )
        )
    ranked.sort(key=lambda f: -f.fit_score)
    return ranked
