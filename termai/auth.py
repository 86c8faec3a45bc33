from __future__ import annotations
import logging
import os
from enum import Enum
from typing import Mapping, Optional

from termai.core.errors import ErrorCategory, UserError

logger = logging.getLogger(__name__)


class AuthMethod(str, Enum):
    API_KEY = "api_key"
    OAUTH = "oauth"


class AuthState(str, Enum):
    INITIAL = "initial"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"
    REFRESHING = "refreshing"
    EXPIRED = "expired"
    UNAUTHENTICATED = "unauthenticated"


class AuthManager:
    """Tracks authentication state for the current session.

    Only API-key authentication from the environment is supported; the key
    is never persisted.
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None, env_var: str = "ANTHROPIC_API_KEY"):
        self.env = os.environ if env is None else env
        self.env_var = env_var
        self.state = AuthState.INITIAL
        self.method: Optional[AuthMethod] = None
        self._api_key: Optional[str] = None

    def initialize(self) -> AuthState:
        self.state = AuthState.AUTHENTICATING
        key = (self.env.get(self.env_var) or "").strip()
        if not key:
            self.state = AuthState.FAILED
            raise UserError(
                "No API key found",
                category=ErrorCategory.AUTHENTICATION,
                resolution=[
                    f"Set the {self.env_var} environment variable",
                    "Run the command again",
                ],
            )
        self._api_key = key
        self.method = AuthMethod.API_KEY
        self.state = AuthState.AUTHENTICATED
        logger.debug("Authenticated with %s", self.method.value)
        return self.state

    def is_authenticated(self) -> bool:
        return self.state == AuthState.AUTHENTICATED

    def get_api_key(self) -> str:
        if not self.is_authenticated() or self._api_key is None:
            raise UserError(
                "Not authenticated",
                category=ErrorCategory.AUTHENTICATION,
                resolution="Initialize authentication before making AI requests.",
            )
        return self._api_key

    def logout(self) -> None:
        self._api_key = None
        self.method = None
        self.state = AuthState.UNAUTHENTICATED
