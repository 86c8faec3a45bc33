"""AI client lifecycle.

``AIModule`` owns one ``AIClient`` and surfaces its failures as UserErrors;
it is held by ``AppContext`` rather than living in a module-level singleton.
"""

from __future__ import annotations
import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional

import requests
from requests import Session

from termai.core.errors import ErrorCategory, UserError, create_user_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_MODEL = "claude-3-5-haiku-latest"
API_VERSION = "2023-06-01"


class AIClient:
    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        api_key: Optional[str] = None,
        session: Optional[Session] = None,
    ):
        config = config or {}
        self.base_url = str(config.get("base_url", DEFAULT_BASE_URL)).rstrip("/")
        self.model = config.get("model", DEFAULT_MODEL)
        self.timeout = config.get("timeout", 30)
        self.api_key = api_key
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }

    def test_connection(self) -> bool:
        """Return True if the service accepts our credentials."""
        if not self.api_key:
            return False
        try:
            r = self.session.get(
                f"{self.base_url}/v1/models", headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.debug("Connection test failed: %s", e)
            return False
        return r.ok

    def close(self) -> None:
        self.session.close()


ClientFactory = Callable[[Dict[str, Any], Optional[str]], AIClient]


class AIModule:
    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        client_factory: Optional[ClientFactory] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.config = config or {}
        self.client_factory = client_factory or AIClient
        self.env = os.environ if env is None else env
        self._client: Optional[AIClient] = None

    def init(self, api_key: Optional[str] = None) -> AIClient:
        """Create the client and verify it can reach the service.

        Raises:
            UserError: INITIALIZATION, wrapping the underlying failure as ``cause``
        """
        logger.info("Initializing AI module")
        try:
            key = api_key or self.env.get("ANTHROPIC_API_KEY")
            client = self.client_factory(self.config, key)

            logger.debug("Testing connection to AI service")
            if not client.test_connection():
                raise create_user_error(
                    "Failed to connect to Claude AI service",
                    category=ErrorCategory.CONNECTION,
                    resolution="Check your internet connection and API key, then try again.",
                )
        except Exception as error:
            logger.error("Failed to initialize AI module: %s", error)
            self._client = None
            raise create_user_error(
                "Failed to initialize AI capabilities",
                cause=error,
                category=ErrorCategory.INITIALIZATION,
                resolution="Check your authentication and internet connection, then try again.",
            )

        self._client = client
        logger.info("AI module initialized successfully")
        return client

    def get_client(self) -> AIClient:
        if self._client is None:
            raise UserError(
                "AI module not initialized",
                category=ErrorCategory.INITIALIZATION,
                resolution="Make sure the AI module is initialized before using AI capabilities.",
            )
        return self._client

    def is_initialized(self) -> bool:
        return self._client is not None

    def dispose(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
