"""DB session dependencies (composition root).

Reads use get_db; writes use get_db_transactional, which runs the whole
request in one transaction at the configured automation isolation level.
"""

from app.infrastructure.persistence.database import get_db, get_db_transactional

__all__ = ["get_db", "get_db_transactional"]
