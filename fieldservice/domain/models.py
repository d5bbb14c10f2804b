"""
Domain models. Dataclasses only. No FastAPI, no external deps beyond dataclasses/typing.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass(frozen=True)
class Job:
    job_id: str
    business_id: str
    job_number: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    estimated_duration_minutes: int = 60
    priority: str = "normal"  # urgent | high | normal | low
    status: Optional[str] = None
    assigned_to: Optional[str] = None
    scheduled_start: Optional[str] = None  # ISO, tal como viene del store
    scheduled_end: Optional[str] = None
    route_sequence: Optional[int] = None
    address_line1: Optional[str] = None
    title: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class Worker:
    worker_id: str
    business_id: str
    first_name: str = ""
    last_name: str = ""
    home_latitude: Optional[float] = None
    home_longitude: Optional[float] = None
    max_daily_jobs: Optional[int] = None
    max_daily_hours: Optional[float] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or "Worker"

    @property
    def has_home(self) -> bool:
        return self.home_latitude is not None and self.home_longitude is not None


@dataclass(frozen=True)
class TimeOffRequest:
    """Approved time off, both ends inclusive."""
    worker_id: str
    start_date: date
    end_date: date

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class AvailabilityRule:
    worker_id: str
    day_of_week: int  # 0 = domingo .. 6 = sábado (esquema team_availability)
    start_time: str = "08:00:00"
    end_time: str = "17:00:00"
    is_available: bool = True


@dataclass
class WorkloadEntry:
    """Carga en memoria de un worker en una fecha. Mutable durante la ejecución."""
    job_count: int = 0
    minutes_used: int = 0


@dataclass(frozen=True)
class Capacity:
    can_take_more: bool
    remaining_jobs: int
    remaining_minutes: int


@dataclass(frozen=True)
class Assignment:
    job_id: str
    worker_id: str
    worker_name: str
    route_date: date
    scheduled_start: str
    scheduled_end: str
    route_position: int
    reasoning: str


@dataclass(frozen=True)
class UnassignedJob:
    job_id: str
    job_number: Optional[str]
    reason: str


@dataclass(frozen=True)
class WriteError:
    """A failed writeback operation. Logged and reported, never retried."""
    operation: str
    message: str
    job_id: Optional[str] = None
    worker_id: Optional[str] = None
    route_date: Optional[str] = None


@dataclass(frozen=True)
class RoutePlan:
    route_plan_id: str
    business_id: str
    worker_id: str
    route_date: str
    job_ids: List[str]
    status: str = "draft"
    optimization_reasoning: Optional[str] = None


@dataclass
class AssignmentRunResult:
    """Salida del motor greedy, antes de escribir."""
    assignments: List[Assignment]
    unassigned: List[UnassignedJob]


@dataclass
class BulkAssignSummary:
    total_jobs: int
    assigned: int
    unassigned: int
    workers_used: int


@dataclass
class BulkAssignResult:
    success: bool
    assignments: List[Assignment]
    unassigned_jobs: List[UnassignedJob]
    route_plans_created: List[str]
    summary: BulkAssignSummary
    write_errors: List[WriteError] = field(default_factory=list)


@dataclass(frozen=True)
class WorkerFit:
    """Una fila del ranking de single-job auto-assign."""
    worker: Worker
    fit_score: float
    existing_jobs: int
    max_daily_jobs: int
    available_minutes: int
    distance_score: float
    capacity_score: float


@dataclass
class SingleAssignResult:
    success: bool
    reasoning: str
    assignment: Optional[Assignment] = None
    alternatives: List[WorkerFit] = field(default_factory=list)
    route_plan_id: Optional[str] = None
    error: Optional[str] = None
    write_errors: List[WriteError] = field(default_factory=list)
