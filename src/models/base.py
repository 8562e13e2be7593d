"""
Declarative base for the credential store.

UUID primary keys use SQLAlchemy's portable ``Uuid`` type (native UUID on
PostgreSQL, CHAR(32) hex on SQLite). ``JSONBlob`` is plain JSON that becomes
JSONB on PostgreSQL.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONBlob = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    type_annotation_map = {
        uuid.UUID: Uuid(),
        dict[str, Any]: JSONBlob,
    }


class BaseModel(Base):
    """
    Abstract model carrying the id and audit timestamps.

    Timestamps are set by the database (UTC on PostgreSQL).
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id})>"
