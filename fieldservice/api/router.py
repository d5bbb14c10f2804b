"""
API router. Calls application only. No business logic.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from fieldservice.api.dependencies import get_business_id, get_store
from fieldservice.api.schemas import (
    AlternativeSchema,
    AssignmentSchema,
    AutoAssignJobRequest,
    AutoAssignJobResponse,
    BulkAssignRequest,
    BulkAssignResponse,
    RoutePlanListResponse,
    RoutePlanSchema,
    SingleAssignmentSchema,
    SummarySchema,
    UnassignedJobSchema,
    WriteErrorSchema,
)
from fieldservice.application.use_cases.auto_assign_job import alternative_reason, auto_assign_job
from fieldservice.application.use_cases.bulk_auto_assign import bulk_auto_assign
from fieldservice.application.use_cases.route_plans import list_route_plans
from fieldservice.domain.errors import InvalidRequestError, JobNotFoundError
from fieldservice.domain.models import WriteError
from fieldservice.infrastructure.store import AssignmentStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _write_errors(errors: list[WriteError]) -> list[WriteErrorSchema]:
    return [
        WriteErrorSchema(
            operation=e.operation,
            message=e.message,
            job_id=e.job_id,
            user_id=e.worker_id,
            route_date=e.route_date,
        )
        for e in errors
    ]


@router.post("/bulk-auto-assign", response_model=BulkAssignResponse)
def post_bulk_auto_assign(
    request: BulkAssignRequest,
    business_id: str = Depends(get_business_id),
    store: AssignmentStore = Depends(get_store),
) -> BulkAssignResponse:
    """
    POST /bulk-auto-assign
    Assigns jobs to workers across a date range. 200 even when some or all jobs stay unassigned.
    """
    date_range = request.date_range
    constraints = request.constraints
    try:
        result = bulk_auto_assign(
            store,
            business_id,
            request.job_ids or [],
            date_start=date_range.start if date_range else None,
            date_end=date_range.end if date_range else None,
            balance_workload=request.balance_workload,
            max_jobs_per_worker=constraints.max_jobs_per_worker if constraints else None,
            preferred_worker_ids=constraints.preferred_worker_ids if constraints else None,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("bulk-auto-assign failed")
        raise HTTPException(status_code=500, detail=str(e))

    return BulkAssignResponse(
        success=result.success,
        assignments=[
            AssignmentSchema(
                job_id=a.job_id,
                user_id=a.worker_id,
                user_name=a.worker_name,
                scheduled_start=a.scheduled_start,
                scheduled_end=a.scheduled_end,
                route_position=a.route_position,
                reasoning=a.reasoning,
            )
            for a in result.assignments
        ],
        unassigned_jobs=[
            UnassignedJobSchema(job_id=u.job_id, job_number=u.job_number, reason=u.reason)
            for u in result.unassigned_jobs
        ],
        route_plans_created=result.route_plans_created,
        summary=SummarySchema(
            total_jobs=result.summary.total_jobs,
            assigned=result.summary.assigned,
            unassigned=result.summary.unassigned,
            workers_used=result.summary.workers_used,
        ),
        write_errors=_write_errors(result.write_errors),
    )


@router.post("/auto-assign-job", response_model=AutoAssignJobResponse)
def post_auto_assign_job(
    request: AutoAssignJobRequest,
    business_id: str = Depends(get_business_id),
    store: AssignmentStore = Depends(get_store),
) -> AutoAssignJobResponse:
    """
    POST /auto-assign-job
    Picks the best-fit worker for one job on one date (default tomorrow).
    """
    try:
        result = auto_assign_job(
            store,
            business_id,
            request.job_id,
            preferred_date=request.preferred_date,
            preferred_worker_id=request.preferred_worker_id,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception("auto-assign-job failed")
        raise HTTPException(status_code=500, detail=str(e))

    assignment = None
    if result.assignment is not None:
        a = result.assignment
        assignment = SingleAssignmentSchema(
            user_id=a.worker_id,
            user_name=a.worker_name,
            scheduled_start=a.scheduled_start,
            scheduled_end=a.scheduled_end,
            route_position=a.route_position,
        )
    return AutoAssignJobResponse(
        success=result.success,
        reasoning=result.reasoning,
        assignment=assignment,
        alternatives=[
            AlternativeSchema(
                user_id=f.worker.worker_id,
                user_name=f.worker.display_name,
                fit_score=f.fit_score,
                reason=alternative_reason(f),
            )
            for f in result.alternatives
        ],
        route_plan_id=result.route_plan_id,
        error=result.error,
        write_errors=_write_errors(result.write_errors),
    )


@router.get("/route-plans", response_model=RoutePlanListResponse)
def get_route_plans(
    userId: str | None = None,
    date: str | None = None,
    dateFrom: str | None = None,
    dateTo: str | None = None,
    business_id: str = Depends(get_business_id),
    store: AssignmentStore = Depends(get_store),
) -> RoutePlanListResponse:
    """
    GET /route-plans
    Query params: userId, date (YYYY-MM-DD) or dateFrom/dateTo.
    """
    try:
        plans = list_route_plans(store, business_id, userId, date, dateFrom, dateTo)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("route-plans read failed")
        raise HTTPException(status_code=500, detail=str(e))
    return RoutePlanListResponse(
        data=[
            RoutePlanSchema(
                id=p.route_plan_id,
                user_id=p.worker_id,
                route_date=p.route_date,
                job_ids=p.job_ids,
                status=p.status,
                optimization_reasoning=p.optimization_reasoning,
            )
            for p in plans
        ]
    )
