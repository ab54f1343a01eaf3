"""Runtime settings read from PATCH_HUB_* environment variables and .env."""

import logging
from typing import Any

from pydantic import ValidationError, ValidationInfo, ValidatorFunctionWrapHandler, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "PATCH_HUB_"
ENV_FILE = ".env"


class Settings(BaseSettings):
    """Process settings; every field can be overridden by PATCH_HUB_<FIELD>."""

    workspace: str = "patchhub.json"
    tool_root: str = "tools/hpatchz"
    service_url: str = "http://localhost:5477/api/"
    service_timeout: float = 5.0
    probe_timeout: float = 1.5
    item_timeout: float = 2.0
    install_timeout: float = 10.0
    process_timeout: float = 300.0
    install_delay_ms: int = 500
    log_level: str = "INFO"
    block_on_integrity: bool = False

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    @field_validator(
        "service_timeout",
        "probe_timeout",
        "item_timeout",
        "install_timeout",
        "process_timeout",
        "install_delay_ms",
        "block_on_integrity",
        mode="wrap",
    )
    @classmethod
    def _default_on_bad_value(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        """Unparsable or negative values keep the field default."""
        default = cls.model_fields[info.field_name].default
        env_name = ENV_PREFIX + info.field_name.upper()
        try:
            parsed = handler(value)
        except ValidationError:
            logger.warning("Ignoring invalid %s=%r", env_name, value)
            return default
        if not isinstance(parsed, bool) and parsed < 0:
            logger.warning("Ignoring negative %s=%r", env_name, value)
            return default
        return parsed


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from the environment, reading ./.env as well when dotenv is set."""
    return Settings(_env_file=ENV_FILE if dotenv else None)
