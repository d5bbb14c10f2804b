"""
Data store port + in-memory implementation.

El motor solo conoce AssignmentStore; Supabase en producción, memoria en local/tests.
"""

import json
import uuid
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from fieldservice.domain.errors import AuthenticationError
from fieldservice.domain.models import AvailabilityRule, Job, RoutePlan, TimeOffRequest, Worker
from fieldservice.infrastructure.record_loader import (
    load_availability_rule,
    load_job,
    load_route_plan,
    load_time_off,
    load_worker,
)


class AssignmentStore(Protocol):
    """Reads and writes used by the assignment use cases. All reads are scoped to one business."""

    def resolve_user_id(self, access_token: str) -> str:
        """User id for a bearer token. Raises AuthenticationError."""
        ...

    def get_business_id(self, user_id: str) -> Optional[str]:
        ...

    def fetch_jobs(self, business_id: str, job_ids: Sequence[str]) -> List[Job]:
        ...

    def fetch_job(self, business_id: str, job_id: str) -> Optional[Job]:
        ...

    def fetch_workers(
        self, business_id: str, worker_ids: Optional[Sequence[str]] = None
    ) -> List[Worker]:
        ...

    def fetch_approved_time_off(
        self, business_id: str, start: date, end: date
    ) -> List[TimeOffRequest]:
        """Approved requests overlapping [start, end]."""
        ...

    def fetch_availability(
        self, business_id: str, worker_ids: Sequence[str]
    ) -> List[AvailabilityRule]:
        ...

    def fetch_scheduled_jobs(
        self, business_id: str, start: date, end: date, statuses: Sequence[str]
    ) -> List[Job]:
        """Jobs in `statuses` whose scheduled_start falls on a day in [start, end]."""
        ...

    def update_job(self, job_id: str, fields: dict) -> None:
        ...

    def upsert_job_assignment(
        self, job_id: str, worker_id: str, business_id: str, role: str
    ) -> None:
        """Conflict key: (job_id, user_id)."""
        ...

    def upsert_route_plan(
        self,
        business_id: str,
        worker_id: str,
        route_date: str,
        job_ids: Sequence[str],
        status: str,
        reasoning: Optional[str] = None,
    ) -> str:
        """Conflict key: (business_id, user_id, route_date). Returns the plan id."""
        ...

    def fetch_route_plan(
        self, business_id: str, worker_id: str, route_date: str
    ) -> Optional[RoutePlan]:
        ...

    def list_route_plans(
        self,
        business_id: str,
        worker_id: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[RoutePlan]:
        ...


def _day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


class InMemoryAssignmentStore:
    """
    Store volátil con las mismas filas que las tablas reales
    (profiles, jobs, time_off_requests, team_availability, job_assignments, daily_route_plans).
    """

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None, tokens: Optional[Dict[str, str]] = None):
        self.tables: Dict[str, List[dict]] = {
            "profiles": [],
            "jobs": [],
            "customers": [],
            "time_off_requests": [],
            "team_availability": [],
            "job_assignments": [],
            "daily_route_plans": [],
        }
        for name, rows in (tables or {}).items():
            self.tables[name] = [dict(r) for r in rows]
        self.tokens: Dict[str, str] = dict(tokens or {})

    @classmethod
    def from_json_file(cls, path: str) -> "InMemoryAssignmentStore":
        """Seed file: {"tables": {table: [rows]}, "tokens": {token: user_id}}."""
        with open(path, encoding="utf-8") as fh:
            seed = json.load(fh)
        return cls(tables=seed.get("tables"), tokens=seed.get("tokens"))

    def _rows(self, table: str) -> Iterable[dict]:
        return self.tables.setdefault(table, [])

    def _with_customer(self, job_row: dict) -> dict:
        row = dict(job_row)
        customer_id = row.get("customer_id")
        if customer_id is not None and "customer" not in row:
            row["customer"] = next(
                (c for c in self._rows("customers") if c.get("id") == customer_id), None
            )
        return row

    def resolve_user_id(self, access_token: str) -> str:
        user_id = self.tokens.get(access_token)
        if user_id is None:
            raise AuthenticationError("Unauthorized")
        return user_id

    def get_business_id(self, user_id: str) -> Optional[str]:
        profile = next((p for p in self._rows("profiles") if p.get("id") == user_id), None)
        return profile.get("business_id") if profile else None

    def fetch_jobs(self, business_id: str, job_ids: Sequence[str]) -> List[Job]:
        wanted = set(job_ids)
        return [
            load_job(self._with_customer(r))
            for r in self._rows("jobs")
            if r.get("id") in wanted and r.get("business_id") == business_id
        ]

    def fetch_job(self, business_id: str, job_id: str) -> Optional[Job]:
        jobs = self.fetch_jobs(business_id, [job_id])
        return jobs[0] if jobs else None

    def fetch_workers(
        self, business_id: str, worker_ids: Optional[Sequence[str]] = None
    ) -> List[Worker]:
        allowed = set(worker_ids) if worker_ids else None
        return [
            load_worker(r)
            for r in self._rows("profiles")
            if r.get("business_id") == business_id and (allowed is None or r.get("id") in allowed)
        ]

    def fetch_approved_time_off(
        self, business_id: str, start: date, end: date
    ) -> List[TimeOffRequest]:
        out = []
        for r in self._rows("time_off_requests"):
            if r.get("business_id") != business_id or r.get("status") != "approved":
                continue
            req = load_time_off(r)
            if req.start_date <= end and req.end_date >= start:
                out.append(req)
        return out

    def fetch_availability(
        self, business_id: str, worker_ids: Sequence[str]
    ) -> List[AvailabilityRule]:
        wanted = set(worker_ids)
        return [
            load_availability_rule(r)
            for r in self._rows("team_availability")
            if r.get("business_id") == business_id and r.get("user_id") in wanted
        ]

    def fetch_scheduled_jobs(
        self, business_id: str, start: date, end: date, statuses: Sequence[str]
    ) -> List[Job]:
        out = []
        for r in self._rows("jobs"):
            if r.get("business_id") != business_id or r.get("status") not in statuses:
                continue
            day = _day(r.get("scheduled_start"))
            if day is not None and start <= day <= end:
                out.append(load_job(r))
        return out

    def update_job(self, job_id: str, fields: dict) -> None:
        for r in self._rows("jobs"):
            if r.get("id") == job_id:
                r.update(fields)

    def upsert_job_assignment(
        self, job_id: str, worker_id: str, business_id: str, role: str
    ) -> None:
        rows = self.tables.setdefault("job_assignments", [])
        for r in rows:
            if r.get("job_id") == job_id and r.get("user_id") == worker_id:
                r.update({"business_id": business_id, "role": role})
                return
        rows.append(
            {"job_id": job_id, "user_id": worker_id, "business_id": business_id, "role": role}
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
        rows = self.tables.setdefault("daily_route_plans", [])
        values = {
            "business_id": business_id,
            "user_id": worker_id,
            "route_date": route_date,
            "job_ids": list(job_ids),
            "status": status,
            "optimization_reasoning": reasoning,
        }
        for r in rows:
            if (r.get("business_id"), r.get("user_id"), r.get("route_date")) == (
                business_id,
                worker_id,
                route_date,
            ):
                r.update(values)
                return r["id"]
        row = {"id": str(uuid.uuid4()), **values}
        rows.append(row)
        return row["id"]

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
        plans = [
            load_route_plan(r)
            for r in self._rows("daily_route_plans")
            if r.get("business_id") == business_id
            and (worker_id is None or r.get("user_id") == worker_id)
            and (date_from is None or str(r.get("route_date"))[:10] >= date_from)
            and (date_to is None or str(r.get("route_date"))[:10] <= date_to)
        ]
        return sorted(plans, key=lambda p: (p.route_date, p.worker_id))
