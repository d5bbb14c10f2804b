"""
FastAPI dependencies: settings, data store, authenticated business scope.
"""

import logging
from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from fieldservice.domain.errors import AuthenticationError, BusinessNotFoundError, StoreError
from fieldservice.infrastructure.settings import Settings, load_settings
from fieldservice.infrastructure.store import AssignmentStore, InMemoryAssignmentStore
from fieldservice.infrastructure.supabase_store import SupabaseAssignmentStore

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    return load_settings()


def create_store(settings: Settings) -> AssignmentStore:
    if settings.store_backend == "memory":
        if not settings.memory_store_seed:
            raise RuntimeError("STORE_BACKEND=memory requires MEMORY_STORE_SEED")
        logger.warning("Using in-memory store seeded from %s; data is lost on restart", settings.memory_store_seed)
        return InMemoryAssignmentStore.from_json_file(settings.memory_store_seed)
    return SupabaseAssignmentStore.from_settings(settings)


@lru_cache
def get_store() -> AssignmentStore:
    return create_store(get_settings())


def bearer_token(authorization: str) -> str:
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return authorization.strip()


def get_business_id(
    authorization: str | None = Header(default=None),
    store: AssignmentStore = Depends(get_store),
) -> str:
    """Bearer token -> user -> business. 401 sin token o token inválido, 400 sin business."""
    if not authorization:
        logger.error("No authorization header")
        raise HTTPException(status_code=401, detail="Missing authorization header")
    try:
        user_id = store.resolve_user_id(bearer_token(authorization))
        business_id = store.get_business_id(user_id)
        if not business_id:
            raise BusinessNotFoundError("No business found")
    except AuthenticationError as e:
        logger.error("Auth error: %s", e)
        raise HTTPException(status_code=401, detail="Unauthorized")
    except BusinessNotFoundError as e:
        logger.error("User %s: %s", user_id, e)
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        logger.exception("Business lookup failed")
        raise HTTPException(status_code=500, detail=str(e))
    logger.info("Authenticated user %s (business %s)", user_id, business_id)
    return business_id
