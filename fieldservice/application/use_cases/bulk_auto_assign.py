"""
Bulk auto-assign use case. Orchestrates load -> sort -> greedy assign -> writeback. No FastAPI.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence

from fieldservice.application.config import (
    ACTIVE_JOB_STATUSES,
    DEFAULT_CAPACITY,
    DEFAULT_SCORING_WEIGHTS,
    JOB_NOT_FOUND_REASON,
    NO_WORKERS_REASON,
)
from fieldservice.application.writeback import write_bulk_assignments
from fieldservice.core.assignment_engine.availability import AvailabilityResolver
from fieldservice.core.assignment_engine.capacity import CapacityTracker
from fieldservice.core.assignment_engine.scoring_assigner import assign_jobs
from fieldservice.domain.constraints import AssignmentConstraints
from fieldservice.domain.errors import InvalidRequestError
from fieldservice.domain.models import BulkAssignResult, BulkAssignSummary, Job, UnassignedJob
from fieldservice.infrastructure.store import AssignmentStore

logger = logging.getLogger(__name__)


def parse_iso_date(value: str, field_name: str) -> date:
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(f"Invalid {field_name} date: {value!r}") from e


def resolve_dates(
    start: Optional[str], end: Optional[str], today: Optional[date] = None
) -> List[date]:
    """Inclusive day list. start defaults to today, end to start. end < start gives []."""
    first = parse_iso_date(start, "start") if start else (today or date.today())
    last = parse_iso_date(end, "end") if end else first
    days: List[date] = []
    current = first
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


def _unique(ids: Sequence[str]) -> List[str]:
    seen = set()
    out = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


def bulk_auto_assign(
    store: AssignmentStore,
    business_id: str,
    job_ids: Sequence[str],
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
    balance_workload: bool = True,
    max_jobs_per_worker: Optional[int] = None,
    preferred_worker_ids: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
) -> BulkAssignResult:
    """
    Flow: fetch jobs -> fetch workers (short-circuit if none) -> time off, availability,
          existing workload -> assign_jobs -> write_bulk_assignments -> BulkAssignResult.
    """
    if not job_ids:
        raise InvalidRequestError("No job IDs provided")

    requested = _unique(job_ids)
    days = resolve_dates(date_start, date_end, today)
    logger.info("Processing %d jobs for business %s", len(requested), business_id)

    fetched = {j.job_id: j for j in store.fetch_jobs(business_id, requested)}
    jobs: List[Job] = [fetched[i] for i in requested if i in fetched]
    missing = [
        UnassignedJob(job_id=i, job_number=None, reason=JOB_NOT_FOUND_REASON)
        for i in requested
        if i not in fetched
    ]
    logger.info("Fetched %d jobs; %d not found", len(jobs), len(missing))
    if days:
        logger.info("Date range: %s to %s (%d days)", days[0], days[-1], len(days))

    preferred = [w for w in (preferred_worker_ids or []) if w]
    workers = store.fetch_workers(business_id, preferred or None)
    if not workers:
        logger.warning("No workers found for business %s", business_id)
        unassigned = [
            UnassignedJob(job_id=j.job_id, job_number=j.job_number, reason=NO_WORKERS_REASON)
            for j in jobs
        ] + missing
        return BulkAssignResult(
            success=False,
            assignments=[],
            unassigned_jobs=unassigned,
            route_plans_created=[],
            summary=BulkAssignSummary(
                total_jobs=len(requested),
                assigned=0,
                unassigned=len(unassigned),
                workers_used=0,
            ),
        )
    logger.info("Found %d workers", len(workers))

    constraints = AssignmentConstraints(
        max_jobs_per_worker=max_jobs_per_worker,
        preferred_worker_ids=frozenset(preferred),
        balance_workload=balance_workload,
    )
    resolver = AvailabilityResolver(time_off=[], rules=[])
    tracker = CapacityTracker.for_constraints(workers, constraints, DEFAULT_CAPACITY)
    if days:
        worker_ids = [w.worker_id for w in workers]
        resolver = AvailabilityResolver(
            time_off=store.fetch_approved_time_off(business_id, days[0], days[-1]),
            rules=store.fetch_availability(business_id, worker_ids),
        )
        tracker.seed(
            store.fetch_scheduled_jobs(business_id, days[0], days[-1], ACTIVE_JOB_STATUSES),
            days,
        )

    run = assign_jobs(
        jobs, workers, days, resolver, tracker, constraints, DEFAULT_SCORING_WEIGHTS, DEFAULT_CAPACITY
    )

    route_plan_ids, write_errors = write_bulk_assignments(store, business_id, run.assignments)

    unassigned = run.unassigned + missing
    result = BulkAssignResult(
        success=not write_errors,
        assignments=run.assignments,
        unassigned_jobs=unassigned,
        route_plans_created=route_plan_ids,
        summary=BulkAssignSummary(
            total_jobs=len(requested),
            assigned=len(run.assignments),
            unassigned=len(unassigned),
            workers_used=len({a.worker_id for a in run.assignments}),
        ),
        write_errors=write_errors,
    )
    logger.info(
        "Complete: %d assigned, %d unassigned, %d write errors",
        result.summary.assigned,
        result.summary.unassigned,
        len(write_errors),
    )
    return result
