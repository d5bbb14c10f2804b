"""
API request/response schemas. Pydantic only in api layer. camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DateRangeSchema(CamelModel):
    start: str | None = None  # "YYYY-MM-DD"
    end: str | None = None


class AssignConstraintsSchema(CamelModel):
    max_jobs_per_worker: int | None = None
    preferred_worker_ids: list[str] | None = None


class BulkAssignRequest(CamelModel):
    # Opcional en el schema para devolver 400 "No job IDs provided" en vez de 422
    job_ids: list[str] | None = None
    date_range: DateRangeSchema | None = None
    balance_workload: bool = True
    constraints: AssignConstraintsSchema | None = None


class AssignmentSchema(CamelModel):
    job_id: str
    user_id: str
    user_name: str
    scheduled_start: str
    scheduled_end: str
    route_position: int
    reasoning: str


class UnassignedJobSchema(CamelModel):
    job_id: str
    job_number: str | None = None
    reason: str


class WriteErrorSchema(CamelModel):
    operation: str
    message: str
    job_id: str | None = None
    user_id: str | None = None
    route_date: str | None = None


class SummarySchema(CamelModel):
    total_jobs: int
    assigned: int
    unassigned: int
    workers_used: int


class BulkAssignResponse(CamelModel):
    success: bool
    assignments: list[AssignmentSchema]
    unassigned_jobs: list[UnassignedJobSchema]
    route_plans_created: list[str]
    summary: SummarySchema
    write_errors: list[WriteErrorSchema] = []


class AutoAssignJobRequest(CamelModel):
    job_id: str | None = None
    preferred_date: str | None = None
    preferred_worker_id: str | None = None


class SingleAssignmentSchema(CamelModel):
    user_id: str
    user_name: str
    scheduled_start: str
    scheduled_end: str
    route_position: int


class AlternativeSchema(CamelModel):
    user_id: str
    user_name: str
    fit_score: float
    reason: str


class AutoAssignJobResponse(CamelModel):
    success: bool
    reasoning: str
    assignment: SingleAssignmentSchema | None = None
    alternatives: list[AlternativeSchema] = []
    route_plan_id: str | None = None
    error: str | None = None
    write_errors: list[WriteErrorSchema] = []


class RoutePlanSchema(CamelModel):
    id: str
    user_id: str
    route_date: str
    job_ids: list[str]
    status: str
    optimization_reasoning: str | None = None


class RoutePlanListResponse(CamelModel):
    data: list[RoutePlanSchema]
