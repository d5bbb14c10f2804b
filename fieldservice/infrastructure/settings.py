"""
Deployment settings from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if not origins or "*" in origins:
        return ["*"]
    return origins


@dataclass(frozen=True)
class Settings:
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    store_backend: str = "supabase"  # supabase | memory
    memory_store_seed: str = ""  # JSON {"tables": {...}, "tokens": {...}} para STORE_BACKEND=memory
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def load_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL", "").strip(),
        supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip(),
        store_backend=os.getenv("STORE_BACKEND", "supabase").strip().lower(),
        memory_store_seed=os.getenv("MEMORY_STORE_SEED", "").strip(),
        cors_allow_origins=_split_origins(os.getenv("CORS_ALLOW_ORIGINS", "*")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
