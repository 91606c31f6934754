"""Configuration with layered resolution: defaults -> YAML -> .env -> env -> overrides.

Uses pydantic-settings with YamlConfigSettingsSource for layered configuration.
Supports ``.env`` file loading, ``ASYNC_DIGEST_`` prefixed env vars, and
nested delimiter ``__`` for overriding sub-model fields.

The analysis-engine credential is deliberately *not* a Settings field: it is
resolved per request by :func:`select_processing_config`, so a changed
environment takes effect on the next request without a restart.
"""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

CREDENTIAL_ENV_VAR = "OPENAI_API_KEY"

# Value shipped in the example env template; never a real key.
PLACEHOLDER_CREDENTIAL = "sk-your-api-key-here"


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class EngineSettings(BaseModel):
    """Capable analysis engine (LLM) configuration."""

    model: str = "openai/gpt-4-turbo-preview"
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4000, gt=0)
    credential_env_var: str = Field(
        default=CREDENTIAL_ENV_VAR,
        description="Environment variable holding the engine credential.",
    )


class IntakeSettings(BaseModel):
    """Input-sufficiency thresholds applied before analysis."""

    min_entries: int = Field(default=2, ge=1)
    min_content_chars: int = Field(
        default=100,
        ge=0,
        description="Minimum total characters of content across all entries.",
    )


class APISettings(BaseModel):
    """FastAPI server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Logging / observability configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Main Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Top-level application settings.

    Resolution order (last wins):
        1. Field defaults (defined above)
        2. YAML config file (``config.yaml`` or ``--config`` path)
        3. Environment variables (prefixed ``ASYNC_DIGEST_``)
        4. CLI overrides (applied programmatically after loading)
    """

    model_config = SettingsConfigDict(
        env_prefix="ASYNC_DIGEST_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="config.yaml",
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    _config_path_override: ClassVar[Path | None] = None

    engine: EngineSettings = Field(default_factory=EngineSettings)
    intake: IntakeSettings = Field(default_factory=IntakeSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings source priority.

        Resolution order (first = highest priority):
            init_settings (CLI) > env_settings > dotenv (.env) > yaml > defaults
        """
        yaml_file = cls._config_path_override or settings_cls.model_config.get(
            "yaml_file", "config.yaml"
        )
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
        )

    @classmethod
    def load(cls, config_path: Path | None = None, **overrides: Any) -> Settings:
        """Load settings with optional config path and CLI overrides.

        Args:
            config_path: Optional path to a YAML config file.
            **overrides: Key-value CLI overrides applied at highest priority.

        Returns:
            Fully-resolved Settings instance.

        Raises:
            ValidationError: If any setting value fails validation.
        """
        cls._config_path_override = config_path
        try:
            return cls(**overrides)
        finally:
            cls._config_path_override = None


def format_validation_error(exc: ValidationError) -> str:
    """Format a Pydantic ValidationError into a user-friendly message.

    Args:
        exc: The validation error to format.

    Returns:
        A multi-line string with each error on its own line.
    """
    lines: list[str] = []
    for error in exc.errors():
        loc = " -> ".join(str(part) for part in error["loc"])
        msg = error["msg"]
        raw_input = error.get("input")
        if raw_input is not None:
            lines.append(f"  {loc}: {msg} (got {raw_input!r})")
        else:
            lines.append(f"  {loc}: {msg}")
    return "Configuration error:\n" + "\n".join(lines)


# ---------------------------------------------------------------------------
# Processing mode selection
# ---------------------------------------------------------------------------


class ProcessingMode(StrEnum):
    """Which analysis strategy produced a digest."""

    CAPABLE = "capable"
    FALLBACK = "fallback"


class ProcessingConfig(BaseModel):
    """Per-request analysis configuration derived from the environment."""

    model_config = ConfigDict(frozen=True)

    use_capable_engine: bool = False
    credential: str | None = Field(default=None, repr=False)


class ProcessingInfo(BaseModel):
    """Human-readable description of the active processing mode."""

    mode: ProcessingMode
    description: str


def is_usable_credential(credential: str | None) -> bool:
    """Return True when *credential* looks like a real, filled-in key."""
    if credential is None:
        return False
    stripped = credential.strip()
    return bool(stripped) and stripped != PLACEHOLDER_CREDENTIAL


def select_processing_config(
    environ: Mapping[str, str] | None = None,
    credential_env_var: str = CREDENTIAL_ENV_VAR,
) -> ProcessingConfig:
    """Resolve the processing configuration for one request.

    Reads the credential from *environ* (``os.environ`` when omitted) on
    every call; nothing is cached between requests.

    Args:
        environ: Environment mapping to read from.
        credential_env_var: Name of the credential variable.

    Returns:
        A ``ProcessingConfig`` whose ``use_capable_engine`` is True only
        for a present, non-empty, non-placeholder credential.
    """
    env = os.environ if environ is None else environ
    credential = env.get(credential_env_var)
    usable = is_usable_credential(credential)
    return ProcessingConfig(
        use_capable_engine=usable,
        credential=credential.strip() if usable and credential else credential,
    )


def describe_processing_mode(
    config: ProcessingConfig,
    credential_env_var: str = CREDENTIAL_ENV_VAR,
) -> ProcessingInfo:
    """Summarize which strategy *config* will use, for display.

    ``credential_env_var`` is the variable named in the fallback hint and
    should match the one *config* was resolved from.
    """
    if config.use_capable_engine:
        return ProcessingInfo(
            mode=ProcessingMode.CAPABLE,
            description="Using the LLM analysis engine for digest generation",
        )
    return ProcessingInfo(
        mode=ProcessingMode.FALLBACK,
        description=(
            "Using the rule-based fallback generator "
            f"(set {credential_env_var} for LLM analysis)"
        ),
    )
