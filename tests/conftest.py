from datetime import date

import pytest

from fieldservice.infrastructure.store import InMemoryAssignmentStore

BUSINESS = "biz-1"
OTHER_BUSINESS = "biz-2"
TOKEN = "token-w1"

MONDAY = date(2024, 6, 10)


def worker_row(worker_id, **overrides):
    row = {
        "id": worker_id,
        "business_id": BUSINESS,
        "first_name": worker_id.upper(),
        "last_name": "Tech",
        "home_latitude": None,
        "home_longitude": None,
        "max_daily_jobs": 8,
        "max_daily_hours": 8,
    }
    row.update(overrides)
    return row


def job_row(job_id, **overrides):
    row = {
        "id": job_id,
        "business_id": BUSINESS,
        "job_number": f"J-{job_id}",
        "status": "pending",
        "priority": "normal",
        "estimated_duration_minutes": 60,
        "latitude": None,
        "longitude": None,
        "assigned_to": None,
        "scheduled_start": None,
        "scheduled_end": None,
        "address_line1": "1 Main St",
    }
    row.update(overrides)
    return row


def time_off_row(worker_id, start, end, status="approved"):
    return {
        "business_id": BUSINESS,
        "user_id": worker_id,
        "start_date": start,
        "end_date": end,
        "status": status,
    }


def availability_row(worker_id, day_of_week, is_available=True, start_time="08:00:00"):
    return {
        "business_id": BUSINESS,
        "user_id": worker_id,
        "day_of_week": day_of_week,
        "start_time": start_time,
        "end_time": "17:00:00",
        "is_available": is_available,
    }


def build_store(workers=(), jobs=(), time_off=(), availability=(), route_plans=(), customers=()):
    return InMemoryAssignmentStore(
        tables={
            "profiles": list(workers),
            "jobs": list(jobs),
            "customers": list(customers),
            "time_off_requests": list(time_off),
            "team_availability": list(availability),
            "daily_route_plans": list(route_plans),
        },
        tokens={TOKEN: "w1"},
    )


@pytest.fixture
def store_factory():
    return build_store
