"""
Authentication module for the calendar adapter.

Provides the Microsoft OAuth 2.0 refresh grant and persistence of the
credentials it keeps alive.
"""

from src.auth.microsoft_oauth import (
    MicrosoftOAuthFlow,
    OAuthTokens,
)
from src.auth.credential_store import (
    CredentialNotFoundError,
    CredentialStore,
    SQLAlchemyCredentialStore,
)

__all__ = [
    # OAuth refresh
    "MicrosoftOAuthFlow",
    "OAuthTokens",
    # Credential storage
    "CredentialNotFoundError",
    "CredentialStore",
    "SQLAlchemyCredentialStore",
]
