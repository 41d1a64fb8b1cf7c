"""Stage ORM model. Workflow stage of a community; owns action instances."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import TimestampedModel


class Stage(TimestampedModel, Base):
    """Stage. Table: stage. Automations are listed per stage through its action instances."""

    __tablename__ = "stage"

    community_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
