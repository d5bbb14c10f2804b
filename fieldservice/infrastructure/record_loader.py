"""
Record loader. Raw store rows (dict) -> domain objects.
"""

from datetime import date
from typing import Any, Optional

from fieldservice.domain.models import AvailabilityRule, Job, RoutePlan, TimeOffRequest, Worker


def _opt_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _opt_int(value: Any) -> Optional[int]:
    f = _opt_float(value)
    return int(f) if f is not None else None


def _opt_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _parse_date(value: Any) -> date:
    """'YYYY-MM-DD' o timestamp ISO; solo se usa la parte de fecha."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def load_job(raw: dict) -> Job:
    """Job row, optionally joined with `customer`. Missing job coordinates fall back to the customer's."""
    customer = raw.get("customer") or {}
    lat = _opt_float(raw.get("latitude"))
    lng = _opt_float(raw.get("longitude"))
    if lat is None:
        lat = _opt_float(customer.get("latitude"))
    if lng is None:
        lng = _opt_float(customer.get("longitude"))
    return Job(
        job_id=str(raw.get("id", "")),
        business_id=str(raw.get("business_id", "")),
        job_number=_opt_str(raw.get("job_number")),
        latitude=lat,
        longitude=lng,
        estimated_duration_minutes=_opt_int(raw.get("estimated_duration_minutes")) or 60,
        priority=raw.get("priority") or "normal",
        status=raw.get("status"),
        assigned_to=_opt_str(raw.get("assigned_to")),
        scheduled_start=_opt_str(raw.get("scheduled_start")),
        scheduled_end=_opt_str(raw.get("scheduled_end")),
        route_sequence=_opt_int(raw.get("route_sequence")),
        address_line1=raw.get("address_line1"),
        title=raw.get("title"),
    )


def load_worker(raw: dict) -> Worker:
    return Worker(
        worker_id=str(raw.get("id", "")),
        business_id=str(raw.get("business_id", "")),
        first_name=raw.get("first_name") or "",
        last_name=raw.get("last_name") or "",
        home_latitude=_opt_float(raw.get("home_latitude")),
        home_longitude=_opt_float(raw.get("home_longitude")),
        max_daily_jobs=_opt_int(raw.get("max_daily_jobs")),
        max_daily_hours=_opt_float(raw.get("max_daily_hours")),
    )


def load_time_off(raw: dict) -> TimeOffRequest:
    return TimeOffRequest(
        worker_id=str(raw.get("user_id", "")),
        start_date=_parse_date(raw["start_date"]),
        end_date=_parse_date(raw["end_date"]),
    )


def load_availability_rule(raw: dict) -> AvailabilityRule:
    return AvailabilityRule(
        worker_id=str(raw.get("user_id", "")),
        day_of_week=int(raw.get("day_of_week", 0)),
        start_time=raw.get("start_time") or "08:00:00",
        end_time=raw.get("end_time") or "17:00:00",
        is_available=bool(raw.get("is_available", True)),
    )


def load_route_plan(raw: dict) -> RoutePlan:
    return RoutePlan(
        route_plan_id=str(raw.get("id", "")),
        business_id=str(raw.get("business_id", "")),
        worker_id=str(raw.get("user_id", "")),
        route_date=str(raw.get("route_date", ""))[:10],
        job_ids=[str(j) for j in raw.get("job_ids") or []],
        status=raw.get("status") or "draft",
        optimization_reasoning=raw.get("optimization_reasoning"),
    )
