"""
Supabase implementation of AssignmentStore. PostgREST queries with the service-role key.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from fieldservice.domain.errors import AuthenticationError, StoreError
from fieldservice.domain.models import AvailabilityRule, Job, RoutePlan, TimeOffRequest, Worker
from fieldservice.infrastructure.record_loader import (
    load_availability_rule,
    load_job,
    load_route_plan,
    load_time_off,
    load_worker,
)
from fieldservice.infrastructure.settings import Settings

logger = logging.getLogger(__name__)

JOB_COLUMNS = "*, customer:customers(first_name, last_name, latitude, longitude)"
WORKER_COLUMNS = (
    "id, business_id, first_name, last_name, max_daily_jobs, max_daily_hours, "
    "home_latitude, home_longitude"
)


def _execute(query, operation: str) -> list:
    try:
        return query.execute().data or []
    except (APIError, httpx.HTTPError) as e:
        raise StoreError(f"{operation} failed: {e}") from e


class SupabaseAssignmentStore:
    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseAssignmentStore":
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")
        return cls(create_client(settings.supabase_url, settings.supabase_service_role_key))

    def resolve_user_id(self, access_token: str) -> str:
        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Token rejected by auth: %s", e)
            raise AuthenticationError("Unauthorized") from e
        if response is None or response.user is None:
            raise AuthenticationError("Unauthorized")
        return response.user.id

    def get_business_id(self, user_id: str) -> Optional[str]:
        rows = _execute(
            self.client.table("profiles").select("business_id").eq("id", user_id).limit(1),
            "fetch profile",
        )
        return rows[0].get("business_id") if rows else None

    def fetch_jobs(self, business_id: str, job_ids: Sequence[str]) -> List[Job]:
        rows = _execute(
            self.client.table("jobs")
            .select(JOB_COLUMNS)
            .in_("id", list(job_ids))
            .eq("business_id", business_id),
            "fetch jobs",
        )
        return [load_job(r) for r in rows]

    def fetch_job(self, business_id: str, job_id: str) -> Optional[Job]:
        jobs = self.fetch_jobs(business_id, [job_id])
        return jobs[0] if jobs else None

    def fetch_workers(
        self, business_id: str, worker_ids: Optional[Sequence[str]] = None
    ) -> List[Worker]:
        query = self.client.table("profiles").select(WORKER_COLUMNS).eq("business_id", business_id)
        if worker_ids:
            query = query.in_("id", list(worker_ids))
        return [load_worker(r) for r in _execute(query, "fetch workers")]

    def fetch_approved_time_off(
        self, business_id: str, start: date, end: date
    ) -> List[TimeOffRequest]:
        rows = _execute(
            self.client.table("time_off_requests")
            .select("user_id, start_date, end_date")
            .eq("business_id", business_id)
            .eq("status", "approved")
            .lte("start_date", end.isoformat())
            .gte("end_date", start.isoformat()),
            "fetch time off",
        )
        return [load_time_off(r) for r in rows]

    def fetch_availability(
        self, business_id: str, worker_ids: Sequence[str]
    ) -> List[AvailabilityRule]:
        if not worker_ids:
            return []
        rows = _execute(
            self.client.table("team_availability")
            .select("user_id, day_of_week, start_time, end_time, is_available")
            .eq("business_id", business_id)
            .in_("user_id", list(worker_ids)),
            "fetch availability",
        )
        return [load_availability_rule(r) for r in rows]

    def fetch_scheduled_jobs(
        self, business_id: str, start: date, end: date, statuses: Sequence[str]
    ) -> List[Job]:
        rows = _execute(
            self.client.table("jobs")
            .select("id, business_id, assigned_to, scheduled_start, scheduled_end, estimated_duration_minutes, status")
            .eq("business_id", business_id)
            .in_("status", list(statuses))
            .gte("scheduled_start", f"{start.isoformat()}T00:00:00")
            .lte("scheduled_start", f"{end.isoformat()}T23:59:59"),
            "fetch scheduled jobs",
        )
        return [load_job(r) for r in rows]

    def update_job(self, job_id: str, fields: dict) -> None:
        _execute(self.client.table("jobs").update(fields).eq("id", job_id), "update job")

    def upsert_job_assignment(
        self, job_id: str, worker_id: str, business_id: str, role: str
    ) -> None:
        _execute(
            self.client.table("job_assignments").upsert(
                {"job_id": job_id, "user_id": worker_id, "business_id": business_id, "role": role},
                on_conflict="job_id,user_id",
            ),
            "upsert job assignment",
        )

    def upsert_route_plan(
        self,
        business_id: str,
        worker_id: str,
        route_date: str,
        job_ids: Sequence[str],
        status: str,
        reasoning: Optional[str] = None,
    ) -> str:
        row = {
            "business_id": business_id,
            "user_id": worker_id,
            "route_date": route_date,
            "job_ids": list(job_ids),
            "status": status,
        }
        if reasoning is not None:
            row["optimization_reasoning"] = reasoning
        rows = _execute(
            self.client.table("daily_route_plans").upsert(
                row, on_conflict="business_id,user_id,route_date"
            ),
            "upsert route plan",
        )
        if not rows:
            raise StoreError("upsert route plan returned no row")
        return str(rows[0]["id"])

    def fetch_route_plan(
        self, business_id: str, worker_id: str, route_date: str
    ) -> Optional[RoutePlan]:
        plans = self.list_route_plans(business_id, worker_id, route_date, route_date)
        return plans[0] if plans else None

    def list_route_plans(
        self,
        business_id: str,
        worker_id: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[RoutePlan]:
        query = self.client.table("daily_route_plans").select("*").eq("business_id", business_id)
        if worker_id:
            query = query.eq("user_id", worker_id)
        if date_from:
            query = query.gte("route_date", date_from)
        if date_to:
            query = query.lte("route_date", date_to)
        query = query.order("route_date").order("user_id")
        return [load_route_plan(r) for r in _execute(query, "list route plans")]
