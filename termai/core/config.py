from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ErrorCategory, UserError
from .logger import DEFAULT_FORMAT


class ErrorHandlingSettings(BaseSettings):
    """Error handling configuration, read from ``TERMAI_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="TERMAI_", case_sensitive=False, extra="ignore")

    max_errors: int = Field(100, ge=1)
    suppress_repeated: bool = False
    fatal_exit_code: int = Field(1, ge=1, le=255)
    exit_on_uncaught: bool = False
    log_level: str = "WARNING"
    log_format: str = DEFAULT_FORMAT
    report_url: Optional[str] = None
    report_timeout: float = Field(5.0, gt=0)


def load_settings(
    path: Optional[Union[str, Path]] = None, **overrides: Any
) -> ErrorHandlingSettings:
    """Load settings from the environment, overlaid with an optional YAML file.

    Explicit keyword overrides win over both. Configuration problems surface
    as a CONFIGURATION UserError so the CLI can show a resolution.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise UserError(
                f"Configuration file not found: {config_path}",
                category=ErrorCategory.CONFIGURATION,
                resolution="Check the --config path or remove the option to use defaults.",
            )
        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise UserError(
                f"Invalid YAML in configuration file {config_path}",
                category=ErrorCategory.CONFIGURATION,
                resolution="Fix the YAML syntax in the configuration file.",
                cause=e,
            )
        if not isinstance(loaded, dict):
            raise UserError(
                f"Configuration file {config_path} must contain a mapping",
                category=ErrorCategory.CONFIGURATION,
                resolution="Use 'key: value' pairs at the top level of the file.",
            )
        data.update(loaded)
    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ErrorHandlingSettings(**data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise UserError(
            "Invalid error handling configuration",
            category=ErrorCategory.CONFIGURATION,
            resolution=[f"Check the value of '{name}'" for name in fields],
            cause=e,
        )
