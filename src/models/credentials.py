"""
OAuth credential storage model.

Stores one provider grant per row. The provider-specific token material
lives in the ``key`` JSON blob so that each calendar integration can keep
its own shape (for Office 365: access_token, refresh_token, expiry_date).
"""

from typing import Any, Optional

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class Credential(BaseModel):
    """
    Stored OAuth grant for a calendar integration.

    Attributes:
        type: Integration type tag (e.g. 'office365_calendar')
        key: Provider-specific key blob, rewritten on every token refresh
        user_id: Owner of the grant in the host application (optional)
    """

    __tablename__ = "credentials"

    type: Mapped[str] = mapped_column(String(100))
    key: Mapped[dict[str, Any]] = mapped_column(default=dict)
    user_id: Mapped[Optional[str]] = mapped_column(String(255))

    __table_args__ = (
        Index("ix_credentials_user_type", "user_id", "type"),
    )

    def __repr__(self) -> str:
        return f"<Credential(id={self.id}, type={self.type}, user_id={self.user_id})>"
