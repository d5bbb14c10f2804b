import pytest

from conftest import BUSINESS, MONDAY, availability_row, job_row, time_off_row, worker_row
from fieldservice.application.use_cases.auto_assign_job import (
    NO_AVAILABLE_REASONING,
    NO_TEAM_REASONING,
    alternative_reason,
    auto_assign_job,
)
from fieldservice.domain.errors import InvalidRequestError, JobNotFoundError


def _booked(job_id="booked", worker_id="w1"):
    return job_row(job_id, status="scheduled", assigned_to=worker_id,
                   scheduled_start="2024-06-10T09:00:00", scheduled_end="2024-06-10T10:30:00")


def test_least_loaded_worker_wins(store_factory):
    store = store_factory(workers=[worker_row("w1"), worker_row("w2")], jobs=[_booked(), job_row("j1")])
    result = auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")

    assert result.success is True
    assert result.assignment.worker_id == "w2"
    assert result.assignment.scheduled_start == "2024-06-10T08:00:00"
    assert result.assignment.route_position == 1
    assert [f.worker.worker_id for f in result.alternatives] == ["w1"]
    assert alternative_reason(result.alternatives[0]) == "Has 1 job(s) already scheduled"
    assert result.reasoning.startswith("W2 Tech was selected")


def test_preferred_worker_boost_and_slot_after_last_job(store_factory):
    store = store_factory(workers=[worker_row("w1"), worker_row("w2")], jobs=[_booked(), job_row("j1")])
    result = auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10", preferred_worker_id="w1")

    assignment = result.assignment
    assert assignment.worker_id == "w1"
    assert assignment.scheduled_start == "2024-06-10T10:45:00"
    assert assignment.scheduled_end == "2024-06-10T11:45:00"
    assert assignment.route_position == 2


def test_day_starts_at_availability_start_time(store_factory):
    store = store_factory(
        workers=[worker_row("w1")],
        jobs=[job_row("j1", estimated_duration_minutes=45)],
        availability=[availability_row("w1", 1, start_time="07:30:00")],
    )
    result = auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")
    assert result.assignment.scheduled_start == "2024-06-10T07:30:00"
    assert result.assignment.scheduled_end == "2024-06-10T08:15:00"


def test_defaults_to_tomorrow(store_factory):
    store = store_factory(workers=[worker_row("w1")], jobs=[job_row("j1")])
    result = auto_assign_job(store, BUSINESS, "j1", today=MONDAY)
    assert result.assignment.scheduled_start.startswith("2024-06-11")


def test_job_is_written_and_appended_to_route_plan(store_factory):
    plan = {"id": "plan-1", "business_id": BUSINESS, "user_id": "w1", "route_date": "2024-06-10",
            "job_ids": ["other"], "status": "optimized", "optimization_reasoning": "manual"}
    store = store_factory(workers=[worker_row("w1")], jobs=[job_row("j1")], route_plans=[plan])
    result = auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")

    assert result.route_plan_id == "plan-1"
    saved = store.tables["daily_route_plans"][0]
    assert saved["job_ids"] == ["other", "j1"]
    assert saved["status"] == "optimized"

    job = store.tables["jobs"][0]
    assert job["assigned_to"] == "w1"
    assert job["status"] == "scheduled"
    assert job["auto_assigned"] is True
    assert job["route_plan_id"] == "plan-1"
    assert store.tables["job_assignments"] == [
        {"job_id": "j1", "user_id": "w1", "business_id": BUSINESS, "role": "lead"}
    ]


def test_reassigning_does_not_duplicate_route_plan_entry(store_factory):
    store = store_factory(workers=[worker_row("w1")], jobs=[job_row("j1")])
    auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")
    store.tables["jobs"][0]["status"] = "pending"
    auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")
    assert store.tables["daily_route_plans"][0]["job_ids"] == ["j1"]


def test_new_route_plan_is_a_draft(store_factory):
    store = store_factory(workers=[worker_row("w1")], jobs=[job_row("j1")])
    result = auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")
    plan = store.tables["daily_route_plans"][0]
    assert plan["id"] == result.route_plan_id
    assert plan["status"] == "draft"


def test_no_team_members(store_factory):
    store = store_factory(jobs=[job_row("j1")])
    result = auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")
    assert result.success is False
    assert result.reasoning == NO_TEAM_REASONING
    assert result.assignment is None


def test_everyone_unavailable(store_factory):
    store = store_factory(
        workers=[worker_row("w1"), worker_row("w2", max_daily_jobs=1)],
        jobs=[job_row("j1"), _booked(worker_id="w2")],
        time_off=[time_off_row("w1", "2024-06-09", "2024-06-11")],
    )
    result = auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")
    assert result.success is False
    assert result.reasoning == NO_AVAILABLE_REASONING
    assert store.tables["jobs"][0]["assigned_to"] is None


def test_job_without_address_is_rejected(store_factory):
    store = store_factory(workers=[worker_row("w1")], jobs=[job_row("j1", address_line1=None)])
    with pytest.raises(InvalidRequestError):
        auto_assign_job(store, BUSINESS, "j1", preferred_date="2024-06-10")


def test_unknown_job(store_factory):
    with pytest.raises(JobNotFoundError):
        auto_assign_job(store_factory(workers=[worker_row("w1")]), BUSINESS, "nope")


def test_bad_preferred_date(store_factory):
    store = store_factory(workers=[worker_row("w1")], jobs=[job_row("j1")])
    with pytest.raises(InvalidRequestError, match="preferredDate"):
        auto_assign_job(store, BUSINESS, "j1", preferred_date="tomorrow-ish")
