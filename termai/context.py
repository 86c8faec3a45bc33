from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from termai.ai import AIModule, ClientFactory
from termai.auth import AuthManager
from termai.core.config import ErrorHandlingSettings
from termai.core.errors import ErrorCategory, UserError
from termai.core.hooks import ErrorHooks, install_error_handling
from termai.core.manager import ErrorManager

logger = logging.getLogger(__name__)


class ContextState(str, Enum):
    CREATED = "created"
    READY = "ready"
    DISPOSED = "disposed"


class AppContext:
    """Explicit owner of the error manager and the AI/auth collaborators.

    Lifecycle is ``create() -> ready() -> dispose()``; usable as a context
    manager, which disposes on exit.
    """

    def __init__(
        self,
        manager: ErrorManager,
        auth: AuthManager,
        ai: AIModule,
        hooks: Optional[ErrorHooks] = None,
    ):
        self.manager = manager
        self.auth = auth
        self.ai = ai
        self.hooks = hooks
        self.state = ContextState.CREATED

    @classmethod
    def create(
        cls,
        settings: Optional[ErrorHandlingSettings] = None,
        *,
        manager: Optional[ErrorManager] = None,
        ai_config: Optional[Dict[str, Any]] = None,
        client_factory: Optional[ClientFactory] = None,
        env: Optional[Mapping[str, str]] = None,
        install_hooks: bool = True,
    ) -> "AppContext":
        manager = manager or ErrorManager(settings)
        hooks = install_error_handling(manager, settings) if install_hooks else None
        return cls(
            manager,
            AuthManager(env=env),
            AIModule(ai_config, client_factory=client_factory, env=env),
            hooks,
        )

    def ready(self) -> "AppContext":
        """Authenticate and bring up the AI client. Idempotent once ready."""
        if self.state == ContextState.DISPOSED:
            raise UserError(
                "Application context has been disposed",
                category=ErrorCategory.INITIALIZATION,
                resolution="Create a new context.",
            )
        if self.state == ContextState.READY:
            return self
        self.auth.initialize()
        self.ai.init(api_key=self.auth.get_api_key())
        self.state = ContextState.READY
        logger.debug("Application context ready")
        return self

    def dispose(self) -> None:
        if self.state == ContextState.DISPOSED:
            return
        self.ai.dispose()
        self.auth.logout()
        if self.hooks is not None:
            self.hooks.uninstall()
        self.state = ContextState.DISPOSED

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()
