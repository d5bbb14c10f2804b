"""
Writeback of a bulk run. One logical unit per job (job update + assignment link),
then one route-plan upsert per (worker, date). Failures are logged and returned, never retried.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from fieldservice.application.config import (
    BULK_ASSIGNMENT_ROLE,
    BULK_ROUTE_PLAN_REASONING,
    ROUTE_PLAN_DRAFT_STATUS,
)
from fieldservice.domain.errors import StoreError
from fieldservice.domain.models import Assignment, WriteError
from fieldservice.infrastructure.store import AssignmentStore

logger = logging.getLogger(__name__)


def job_assignment_fields(assignment: Assignment) -> dict:
    return {
        "assigned_to": assignment.worker_id,
        "scheduled_start": assignment.scheduled_start,
        "scheduled_end": assignment.scheduled_end,
        "route_sequence": assignment.route_position,
        "auto_assigned": True,
        "assignment_reasoning": assignment.reasoning,
        "status": "scheduled",
    }


def group_by_worker_date(assignments: Sequence[Assignment]) -> Dict[Tuple[str, str], List[str]]:
    """(worker_id, 'YYYY-MM-DD') -> job ids, in assignment order."""
    groups: Dict[Tuple[str, str], List[str]] = {}
    for a in assignments:
        groups.setdefault((a.worker_id, a.route_date.isoformat()), []).append(a.job_id)
    return groups


def persist_assignment(store: AssignmentStore, business_id: str, assignment: Assignment) -> None:
    store.update_job(assignment.job_id, job_assignment_fields(assignment))
    store.upsert_job_assignment(
        assignment.job_id, assignment.worker_id, business_id, BULK_ASSIGNMENT_ROLE
    )


def write_bulk_assignments(
    store: AssignmentStore,
    business_id: str,
    assignments: Sequence[Assignment],
) -> Tuple[List[str], List[WriteError]]:
    """
    1. Persist each assignment; a failed unit is recorded and its job left out of the route plan.
    2. Upsert one draft route plan per (worker, date) with the persisted job ids.
    Returns (route plan ids, write errors).
    """
    errors: List[WriteError] = []
    persisted: List[Assignment] = []

    for assignment in assignments:
        try:
            persist_assignment(store, business_id, assignment)
        except StoreError as e:
            logger.warning("Failed to persist assignment of job %s: %s", assignment.job_id, e)
            errors.append(
                WriteError(
                    operation="assign_job",
                    message=str(e),
                    job_id=assignment.job_id,
                    worker_id=assignment.worker_id,
                )
            )
            continue
        persisted.append(assignment)

    route_plan_ids: List[str] = []
    for (worker_id, route_date), job_ids in group_by_worker_date(persisted).items():
        try:
            plan_id = store.upsert_route_plan(
                business_id,
                worker_id,
                route_date,
                job_ids,
                ROUTE_PLAN_DRAFT_STATUS,
                BULK_ROUTE_PLAN_REASONING,
            )
        except StoreError as e:
            logger.warning("Failed to upsert route plan for %s on %s: %s", worker_id, route_date, e)
            errors.append(
                WriteError(
                    operation="upsert_route_plan",
                    message=str(e),
                    worker_id=worker_id,
                    route_date=route_date,
                )
            )
            continue
        route_plan_ids.append(plan_id)

    return route_plan_ids, errors
