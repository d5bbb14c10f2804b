"""
Configuración por defecto para los casos de uso de asignación.
Un solo lugar para evitar duplicar valores entre API, motor y writeback.
"""

from fieldservice.domain.constraints import CapacityDefaults, FitWeights, ScoringWeights

# 8 jobs / 8 h por día, 60 min por job; bulk apila jobs desde las 08:00, una hora por job
DEFAULT_CAPACITY = CapacityDefaults()

# Estados que cuentan como carga existente
ACTIVE_JOB_STATUSES = ("scheduled", "in_progress")

DEFAULT_SCORING_WEIGHTS = ScoringWeights()
DEFAULT_FIT_WEIGHTS = FitWeights()

# Single-job: margen entre el último job del día y el nuevo
SINGLE_ASSIGN_BUFFER_MINUTES = 15
SINGLE_ASSIGN_DEFAULT_START = "08:00:00"
SINGLE_ASSIGN_MAX_ALTERNATIVES = 2

ROUTE_PLAN_DRAFT_STATUS = "draft"
BULK_ROUTE_PLAN_REASONING = "Created via bulk auto-assign"
BULK_ASSIGNMENT_ROLE = "primary"
SINGLE_ASSIGNMENT_ROLE = "lead"

NO_WORKERS_REASON = "No workers available"
JOB_NOT_FOUND_REASON = "Job not found"
