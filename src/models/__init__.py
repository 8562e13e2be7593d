"""
SQLAlchemy models for the calendar adapter.

Importing this package registers every table on ``Base.metadata`` for
Alembic and ``init_db()``.
"""

from src.models.base import Base, BaseModel, JSONBlob
from src.models.credentials import Credential

__all__ = [
    "Base",
    "BaseModel",
    "JSONBlob",
    "Credential",
]
