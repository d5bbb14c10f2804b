"""
Single-job auto-assign use case. Rank workers for one job on one date, take the best,
slot it after the worker's existing jobs and append it to their route plan. No FastAPI.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from fieldservice.application.config import (
    ACTIVE_JOB_STATUSES,
    DEFAULT_CAPACITY,
    DEFAULT_FIT_WEIGHTS,
    ROUTE_PLAN_DRAFT_STATUS,
    SINGLE_ASSIGN_BUFFER_MINUTES,
    SINGLE_ASSIGN_DEFAULT_START,
    SINGLE_ASSIGN_MAX_ALTERNATIVES,
    SINGLE_ASSIGNMENT_ROLE,
)
from fieldservice.application.use_cases.bulk_auto_assign import parse_iso_date
from fieldservice.core.assignment_engine.availability import AvailabilityResolver
from fieldservice.core.assignment_engine.capacity import job_duration
from fieldservice.core.assignment_engine.worker_ranking import rank_workers
from fieldservice.domain.errors import InvalidRequestError, JobNotFoundError, StoreError
from fieldservice.domain.models import Assignment, Job, SingleAssignResult, WorkerFit, WriteError
from fieldservice.infrastructure.store import AssignmentStore

logger = logging.getLogger(__name__)

NO_TEAM_REASONING = "No team members are configured for this business."
NO_AVAILABLE_REASONING = (
    "No team members are available on this date. "
    "They may be on time off, at capacity, or not scheduled to work."
)


def alternative_reason(fit: WorkerFit) -> str:
    if fit.existing_jobs == 0:
        return "Currently has no jobs scheduled"
    return f"Has {fit.existing_jobs} job(s) already scheduled"


def next_slot_start(
    target: date,
    worker_jobs: List[Job],
    workday_start: Optional[str],
) -> datetime:
    """Inicio de jornada si no hay jobs ese día; si no, fin del último job + buffer."""
    if not worker_jobs:
        start_time = time.fromisoformat(workday_start or SINGLE_ASSIGN_DEFAULT_START)
        return datetime.combine(target, start_time)
    last = worker_jobs[-1]
    anchor = datetime.fromisoformat(last.scheduled_end or last.scheduled_start)
    return anchor + timedelta(minutes=SINGLE_ASSIGN_BUFFER_MINUTES)


def auto_assign_job(
    store: AssignmentStore,
    business_id: str,
    job_id: Optional[str],
    preferred_date: Optional[str] = None,
    preferred_worker_id: Optional[str] = None,
    today: Optional[date] = None,
) -> SingleAssignResult:
    if not job_id:
        raise InvalidRequestError("jobId is required")

    job = store.fetch_job(business_id, job_id)
    if job is None:
        raise JobNotFoundError("Job not found")
    if not job.address_line1 and job.latitude is None:
        raise InvalidRequestError("Job needs an address before it can be auto-assigned")

    if preferred_date:
        target = parse_iso_date(preferred_date, "preferredDate")
    else:
        target = (today or date.today()) + timedelta(days=1)
    logger.info("Auto-assign request for job %s on %s", job_id, target)

    workers = store.fetch_workers(business_id)
    if not workers:
        return SingleAssignResult(
            success=False, reasoning=NO_TEAM_REASONING, error="No team members available"
        )

    resolver = AvailabilityResolver(
        time_off=store.fetch_approved_time_off(business_id, target, target),
        rules=store.fetch_availability(business_id, [w.worker_id for w in workers]),
    )
    existing = store.fetch_scheduled_jobs(business_id, target, target, ACTIVE_JOB_STATUSES)
    counts: Dict[str, int] = {}
    minutes: Dict[str, int] = {}
    for j in existing:
        if j.assigned_to:
            counts[j.assigned_to] = counts.get(j.assigned_to, 0) + 1
            minutes[j.assigned_to] = minutes.get(j.assigned_to, 0) + job_duration(j, DEFAULT_CAPACITY)

    ranked = rank_workers(
        job, workers, target, resolver, counts, minutes,
        preferred_worker_id, DEFAULT_FIT_WEIGHTS, DEFAULT_CAPACITY,
    )
    logger.info("Found %d available workers after filtering", len(ranked))
    if not ranked:
        return SingleAssignResult(
            success=False, reasoning=NO_AVAILABLE_REASONING, error="No available workers"
        )

    selected = ranked[0]
    worker = selected.worker
    reasoning = f"{worker.display_name} was selected based on availability and workload balance."

    worker_jobs = sorted(
        (j for j in existing if j.assigned_to == worker.worker_id and j.scheduled_start),
        key=lambda j: j.scheduled_start,
    )
    open_rules = [r for r in resolver.rules_for(worker.worker_id, target) if r.is_available]
    start = next_slot_start(target, worker_jobs, open_rules[0].start_time if open_rules else None)
    end = start + timedelta(minutes=job_duration(job, DEFAULT_CAPACITY))
    assignment = Assignment(
        job_id=job.job_id,
        worker_id=worker.worker_id,
        worker_name=worker.display_name,
        route_date=target,
        scheduled_start=start.isoformat(),
        scheduled_end=end.isoformat(),
        route_position=len(worker_jobs) + 1,
        reasoning=reasoning,
    )

    # Fallo al actualizar el job = fallo de la petición; el resto se reporta y sigue
    store.update_job(
        job.job_id,
        {
            "assigned_to": worker.worker_id,
            "scheduled_start": assignment.scheduled_start,
            "scheduled_end": assignment.scheduled_end,
            "auto_assigned": True,
            "assignment_reasoning": reasoning,
            "status": "scheduled",
        },
    )
    write_errors: List[WriteError] = []
    try:
        store.upsert_job_assignment(job.job_id, worker.worker_id, business_id, SINGLE_ASSIGNMENT_ROLE)
    except StoreError as e:
        logger.warning("Assignment link for job %s failed: %s", job.job_id, e)
        write_errors.append(
            WriteError(operation="upsert_job_assignment", message=str(e), job_id=job.job_id)
        )

    route_plan_id: Optional[str] = None
    route_date = target.isoformat()
    try:
        plan = store.fetch_route_plan(business_id, worker.worker_id, route_date)
        if plan is not None:
            job_ids = plan.job_ids if job.job_id in plan.job_ids else plan.job_ids + [job.job_id]
            route_plan_id = store.upsert_route_plan(
                business_id, worker.worker_id, route_date,
                job_ids, plan.status, plan.optimization_reasoning,
            )
        else:
            route_plan_id = store.upsert_route_plan(
                business_id, worker.worker_id, route_date, [job.job_id], ROUTE_PLAN_DRAFT_STATUS
            )
        store.update_job(job.job_id, {"route_plan_id": route_plan_id})
    except StoreError as e:
        logger.warning("Route plan update for job %s failed: %s", job.job_id, e)
        write_errors.append(
            WriteError(
                operation="upsert_route_plan",
                message=str(e),
                job_id=job.job_id,
                worker_id=worker.worker_id,
                route_date=route_date,
            )
        )

    logger.info("Assigned job %s to %s", job.job_id, worker.display_name)
    return SingleAssignResult(
        success=True,
        reasoning=reasoning,
        assignment=assignment,
        alternatives=ranked[1 : 1 + SINGLE_ASSIGN_MAX_ALTERNATIVES],
        route_plan_id=route_plan_id,
        write_errors=write_errors,
    )
