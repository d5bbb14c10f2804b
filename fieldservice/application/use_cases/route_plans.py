"""
Route plan read use case. Lets callers reconcile what a bulk run actually persisted.
"""

from typing import List, Optional

from fieldservice.application.use_cases.bulk_auto_assign import parse_iso_date
from fieldservice.domain.errors import InvalidRequestError
from fieldservice.domain.models import RoutePlan
from fieldservice.infrastructure.store import AssignmentStore


def list_route_plans(
    store: AssignmentStore,
    business_id: str,
    worker_id: Optional[str] = None,
    day: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> List[RoutePlan]:
    """`day` wins over the from/to pair."""
    if day:
        date_from = date_to = parse_iso_date(day, "date").isoformat()
    else:
        date_from = parse_iso_date(date_from, "dateFrom").isoformat() if date_from else None
        date_to = parse_iso_date(date_to, "dateTo").isoformat() if date_to else None
    if date_from and date_to and date_to < date_from:
        raise InvalidRequestError("dateTo must not be before dateFrom")
    return store.list_route_plans(business_id, worker_id, date_from, date_to)
