"""
Credential persistence for OAuth grants.

The calendar adapters only need to write back a refreshed key blob, so the
store contract is deliberately small: ``update(credential_id, key)``. The
SQLAlchemy implementation persists to the ``credentials`` table.
"""

import logging
import uuid
from typing import Optional, Protocol, Union

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.database import session_scope
from src.models.credentials import Credential

logger = logging.getLogger(__name__)

CredentialId = Union[uuid.UUID, str]


class CredentialNotFoundError(LookupError):
    """Raised when writing back a credential that no longer exists."""


class CredentialStore(Protocol):
    """Persistence boundary used by token caches."""

    async def update(self, credential_id: CredentialId, key: dict) -> None:
        """Persist the full key blob for a credential. Must be atomic per id."""
        ...


def _as_uuid(credential_id: CredentialId) -> uuid.UUID:
    if isinstance(credential_id, uuid.UUID):
        return credential_id
    return uuid.UUID(str(credential_id))


class SQLAlchemyCredentialStore:
    """
    CredentialStore backed by the ``credentials`` table.

    Each write runs in its own ``session_scope`` transaction.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        """
        Initialize the store.

        Args:
            session_factory: Async session factory (defaults to AsyncSessionLocal)
        """
        self._session_factory = session_factory

    async def get(self, credential_id: CredentialId) -> Optional[Credential]:
        """
        Load a stored credential.

        Args:
            credential_id: Credential primary key

        Returns:
            Credential if found, None otherwise
        """
        async with session_scope(self._session_factory) as session:
            return await session.get(Credential, _as_uuid(credential_id))

    async def add(self, credential_type: str, key: dict, user_id: Optional[str] = None) -> Credential:
        """
        Store a new credential.

        Args:
            credential_type: Integration type tag
            key: Provider-specific key blob
            user_id: Owner in the host application

        Returns:
            The persisted Credential
        """
        credential = Credential(type=credential_type, key=dict(key), user_id=user_id)
        async with session_scope(self._session_factory) as session:
            session.add(credential)
            await session.flush()
            await session.refresh(credential)

        logger.info(f"Stored new {credential_type} credential {credential.id}")
        return credential

    async def update(self, credential_id: CredentialId, key: dict) -> None:
        """
        Replace a credential's key blob.

        Args:
            credential_id: Credential primary key
            key: Full key blob to persist

        Raises:
            CredentialNotFoundError: If no credential has this id
        """
        stmt = (
            update(Credential)
            .where(Credential.id == _as_uuid(credential_id))
            .values(key=dict(key))
        )
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise CredentialNotFoundError(f"Credential {credential_id} not found")

        logger.info(f"Persisted refreshed key for credential {credential_id}")
