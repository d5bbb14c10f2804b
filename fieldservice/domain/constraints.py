"""
Domain constraints. Dataclasses only. No FastAPI, no external deps beyond dataclasses/typing.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class AssignmentConstraints:
    """Restricciones del caller para una ejecución bulk."""
    max_jobs_per_worker: Optional[int] = None  # override de max_daily_jobs
    preferred_worker_ids: FrozenSet[str] = field(default_factory=frozenset)
    balance_workload: bool = True


@dataclass(frozen=True)
class CapacityDefaults:
    """Valores cuando el perfil del worker o el job no los define."""
    max_daily_jobs: int = 8
    max_daily_hours: float = 8
    job_duration_minutes: int = 60
    base_hour: int = 8  # primer slot del día en bulk


@dataclass(frozen=True)
class ScoringWeights:
    """
    score = base
          - min(distance_km * per_km, max_distance_penalty)   (coordenadas conocidas)
          + remaining_jobs * per_remaining_job                 (balance_workload)
          + preferred_bonus                                    (worker preferido)
    """
    base: float = 100.0
    distance_penalty_per_km: float = 2.0
    max_distance_penalty: float = 50.0
    balance_bonus_per_remaining_job: float = 3.0
    preferred_bonus: float = 20.0


@dataclass(frozen=True)
class FitWeights:
    """Pesos del ranking single-job (escala 0-1)."""
    distance: float = 0.4
    capacity: float = 0.5
    preferred_boost: float = 0.2
    floor: float = 0.1
    unknown_distance_score: float = 0.5
    max_distance_miles: float = 50.0
