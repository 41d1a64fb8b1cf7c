"""ActionInstance ORM model. A configured action on a stage; node of the trigger graph."""

from typing import Any

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import TimestampedModel


class ActionInstance(TimestampedModel, Base):
    """Action instance. Table: action_instance. Deleting the stage deletes its action instances."""

    __tablename__ = "action_instance"

    stage_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("stage.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    config: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
