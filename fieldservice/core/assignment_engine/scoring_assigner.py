"""
Bulk assignment. Greedy deterministic, priority-ordered. No solver.
"""

import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from fieldservice.core.assignment_engine.availability import AvailabilityResolver
from fieldservice.core.assignment_engine.capacity import CapacityTracker, job_duration
from fieldservice.core.assignment_engine.geo import haversine_km
from fieldservice.domain.constraints import AssignmentConstraints, CapacityDefaults, ScoringWeights
from fieldservice.domain.models import (
    Assignment,
    AssignmentRunResult,
    Capacity,
    Job,
    UnassignedJob,
    Worker,
)

logger = logging.getLogger(__name__)

PRIORITY_RANK = {"urgent": 0, "high": 1, "normal": 2, "low": 3}
NO_CAPACITY_REASON = "No available workers with capacity in date range"
HOURS_PER_DAY = 24


def priority_rank(job: Job) -> int:
    return PRIORITY_RANK.get(job.priority or "normal", PRIORITY_RANK["normal"])


def sort_by_priority(jobs: Sequence[Job]) -> List[Job]:
    """urgent < high < normal < low. sorted() es estable: empates conservan el orden de entrada."""
    return sorted(jobs, key=priority_rank)


def score_slot(
    worker: Worker,
    job: Job,
    capacity: Capacity,
    constraints: AssignmentConstraints,
    weights: ScoringWeights,
) -> float:
    score = weights.base
    if worker.has_home and job.has_location:
        distance = haversine_km(
            worker.home_latitude, worker.home_longitude, job.latitude, job.longitude
        )
        score -= min(distance * weights.distance_penalty_per_km, weights.max_distance_penalty)
    if constraints.balance_workload:
        score += capacity.remaining_jobs * weights.balance_bonus_per_remaining_job
    if worker.worker_id in constraints.preferred_worker_ids:
        score += weights.preferred_bonus
    return score


def find_best_slot(
    job: Job,
    workers: Sequence[Worker],
    days: Sequence[date],
    resolver: AvailabilityResolver,
    tracker: CapacityTracker,
    constraints: AssignmentConstraints,
    weights: ScoringWeights,
    defaults: CapacityDefaults,
    positions: Optional[Dict[Tuple[str, date], int]] = None,
) -> Optional[Tuple[Worker, date, float]]:
    """
    Scan date-major, worker-minor. Strict '>' so the first best slot found wins.
    `positions` = jobs already stacked per (worker, date) in this run.
    """
    duration = job_duration(job, defaults)
    positions = positions or {}
    best: Optional[Tuple[Worker, date, float]] = None
    best_score = -math.inf
    for day in days:
        for worker in workers:
            if not resolver.is_available(worker.worker_id, day):
                continue
            capacity = tracker.capacity(worker.worker_id, day)
            if not capacity.can_take_more:
                continue
            if capacity.remaining_minutes < duration:
                continue
            if not fits_in_day(positions.get((worker.worker_id, day), 0), duration, defaults):
                continue
            score = score_slot(worker, job, capacity, constraints, weights)
            if score > best_score:
                best_score = score
                best = (worker, day, score)
    return best


def fits_in_day(position: int, duration_minutes: int, defaults: CapacityDefaults) -> bool:
    """El slot debe terminar antes de medianoche; si no, el job caería en otra fecha."""
    return defaults.base_hour + position + math.ceil(duration_minutes / 60) <= HOURS_PER_DAY


def schedule_window(
    day: date, position: int, duration_minutes: int, defaults: CapacityDefaults
) -> Tuple[str, str]:
    """
    Jobs apilados desde base_hour, una hora por job ya asignado en esta ejecución.
    Fin = inicio + ceil(duración / 60) horas: un job de 30 min ocupa un slot de 1 h.
    """
    start = datetime.combine(day, time(hour=defaults.base_hour)) + timedelta(hours=position)
    end = start + timedelta(hours=math.ceil(duration_minutes / 60))
    return start.isoformat(), end.isoformat()


def assignment_reasoning(constraints: AssignmentConstraints) -> str:
    basis = "workload balance" if constraints.balance_workload else "capacity"
    return f"Assigned based on availability and {basis}"


def assign_jobs(
    jobs: Sequence[Job],
    workers: Sequence[Worker],
    days: Sequence[date],
    resolver: AvailabilityResolver,
    tracker: CapacityTracker,
    constraints: AssignmentConstraints = AssignmentConstraints(),
    weights: ScoringWeights = ScoringWeights(),
    defaults: CapacityDefaults = CapacityDefaults(),
) -> AssignmentRunResult:
    """
    1. Sort jobs by priority (stable).
    2. For each job, score every feasible (worker, date) and keep the best.
    3. Record the load in the tracker so later jobs see it.
    4. Stack the job after the ones already assigned to that worker/date in this run.
    No backtracking: earlier choices are never revisited.
    """
    assignments: List[Assignment] = []
    unassigned: List[UnassignedJob] = []
    positions: Dict[Tuple[str, date], int] = {}
    reasoning = assignment_reasoning(constraints)

    for job in sort_by_priority(jobs):
        best = find_best_slot(
            job, workers, days, resolver, tracker, constraints, weights, defaults, positions
        )
        if best is None:
            unassigned.append(
                UnassignedJob(job_id=job.job_id, job_number=job.job_number, reason=NO_CAPACITY_REASON)
            )
            logger.info("Could not assign job %s", job.job_number or job.job_id)
            continue

        worker, day, score = best
        duration = job_duration(job, defaults)
        tracker.record(worker.worker_id, day, duration)

        position = positions.get((worker.worker_id, day), 0)
        positions[(worker.worker_id, day)] = position + 1
        start, end = schedule_window(day, position, duration, defaults)

        assignments.append(
            Assignment(
                job_id=job.job_id,
                worker_id=worker.worker_id,
                worker_name=worker.display_name,
                route_date=day,
                scheduled_start=start,
                scheduled_end=end,
                route_position=position + 1,
                reasoning=reasoning,
            )
        )
        logger.info(
            "Assigned job %s to %s on %s (score %.1f)",
            job.job_number or job.job_id,
            worker.display_name,
            day.isoformat(),
            score,
        )

    return AssignmentRunResult(assignments=assignments, unassigned=unassigned)
