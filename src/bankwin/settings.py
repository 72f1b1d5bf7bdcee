"""Configuration loading and validation for bankwin.

Configuration is loaded from bankwin.yaml and validated using Pydantic.
Without a file, defaults apply and BANKWIN_* environment variables
override them (e.g. BANKWIN_PERIOD_GRAIN=quarter).
"""

from __future__ import annotations

from functools import cache
from pathlib import Path

import pydantic as pdt
import pydantic_settings as pdts
import yaml

import bankwin.engine as engine_mod
import bankwin.errors as errors
import bankwin.models as models


class Settings(pdts.BaseSettings):
    """Base settings class with strict validation."""

    model_config = pdts.SettingsConfigDict(
        env_prefix="BANKWIN_",
        strict=True,
        frozen=True,
        extra="forbid",
    )


class AnalyticsSettings(Settings):
    """Root configuration loaded from bankwin.yaml.

    Example bankwin.yaml:
        amount_policy: signed
        top_n: 5
        period_grain: month
        moving_average_window: 3
        moving_average_partial: false
        engine:
          kind: duckdb
          threads: 2
    """

    amount_policy: models.AmountPolicy = "non_negative"
    top_n: int = pdt.Field(default=3, ge=1)
    period_grain: models.PeriodGrain = "month"
    moving_average_window: int = pdt.Field(default=3, ge=1)
    moving_average_partial: bool = True
    engine: engine_mod.DuckDBEngine = pdt.Field(default_factory=engine_mod.DuckDBEngine)


def load_settings(path: Path | str = Path("bankwin.yaml")) -> AnalyticsSettings:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to bankwin.yaml file.

    Returns:
        Validated AnalyticsSettings instance.

    Raises:
        ConfigNotFoundError: If config file doesn't exist.
        ConfigValidationError: If config fails validation.
    """
    path = Path(path)

    if not path.exists():
        raise errors.ConfigNotFoundError(str(path))

    try:
        with path.open() as f:
            config_dict = yaml.safe_load(f) or {}
        if not isinstance(config_dict, dict):
            raise errors.ConfigValidationError(
                path=str(path),
                details=f"  - (root): expected a mapping, got {type(config_dict).__name__}",
            )
        return AnalyticsSettings.model_validate(config_dict)
    except pdt.ValidationError as e:
        raise errors.ConfigValidationError(
            path=str(path),
            details=_format_validation_errors(e),
        ) from e
    except yaml.YAMLError as e:
        raise errors.ConfigValidationError(
            path=str(path),
            details=str(e),
        ) from e


def _format_validation_errors(error: pdt.ValidationError) -> str:
    """Format Pydantic validation errors into readable messages."""
    messages = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"])
        msg = err["msg"]
        messages.append(f"  - {loc}: {msg}")
    return "\n".join(messages)


@cache
def get_settings() -> AnalyticsSettings:
    """Get cached settings built from defaults and BANKWIN_* variables.

    For testing or when you need to load from a specific path,
    use load_settings() directly.
    """
    return AnalyticsSettings()
