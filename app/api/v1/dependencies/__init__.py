"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for DB sessions and automation use cases.
Use cases are built from infrastructure implementations here; routes
depend only on these dependencies, not on infrastructure directly.
"""

from app.api.v1.dependencies.automation import (
    get_automation_query,
    get_remove_automation_use_case,
    get_trigger_graph_validator,
    get_upsert_automation_use_case,
)
from app.api.v1.dependencies.db import get_db, get_db_transactional

__all__ = [
    "get_automation_query",
    "get_db",
    "get_db_transactional",
    "get_remove_automation_use_case",
    "get_trigger_graph_validator",
    "get_upsert_automation_use_case",
]
