"""
Admin authentication context.

Holds the bearer token for one application session. The context is created
by the caller and handed to AdminApiClient, so tests and scripts can see
(and swap) exactly which token a client uses.
"""

from typing import Dict, Optional

from pydantic import SecretStr


class AuthContext:
    """Mutable holder for the admin bearer token."""

    def __init__(self, token: Optional[str] = None):
        self._token: Optional[SecretStr] = SecretStr(token) if token else None

    @classmethod
    def from_settings(cls, settings) -> "AuthContext":
        token = settings.ADMIN_TOKEN.get_secret_value() if settings.ADMIN_TOKEN else None
        return cls(token)

    def get(self) -> Optional[str]:
        return self._token.get_secret_value() if self._token else None

    def set(self, token: str) -> None:
        if not token:
            raise ValueError("token must be a non-empty string")
        self._token = SecretStr(token)

    def clear(self) -> None:
        self._token = None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def headers(self) -> Dict[str, str]:
        """Authorization header for the current token, empty when signed out."""
        token = self.get()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def __repr__(self) -> str:
        return f"AuthContext(authenticated={self.is_authenticated})"
