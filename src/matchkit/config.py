"""Settings for matchkit's pipeline.

Resolution precedence is: schema defaults < ``MATCHKIT_*`` environment
variables < explicit overrides. A ``.env`` file is only read when asked for.

Example:
    ```python
    from matchkit.config import resolve_settings

    settings = resolve_settings({"queue_maxsize": 8})
    ```
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from matchkit.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "MATCHKIT_"


class Settings(BaseModel):
    """Validated settings schema, the single source of defaults."""

    # 0 means unbounded hand-off queues between pipeline stages
    queue_maxsize: int = Field(default=0, ge=0)
    log_discarded_outputs: bool = Field(default=True)

    model_config = {"frozen": True, "extra": "forbid"}


def _coerce_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _coerce_env_value(value: str, target_type: Any) -> Any:
    """Coerce an env string to the field type; leave it to pydantic on failure."""
    if target_type is bool:
        return _coerce_bool(value)
    if target_type is int:
        try:
            return int(value)
        except ValueError:
            return value
    return value


def load_env() -> dict[str, Any]:
    """Read known ``MATCHKIT_*`` variables from ``os.environ``.

    Unknown ``MATCHKIT_*`` names are ignored so that unrelated tooling can
    share the prefix.
    """
    config: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        info = Settings.model_fields.get(field_name)
        if info is None:
            continue
        config[field_name] = _coerce_env_value(value, info.annotation)
    return config


def resolve_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    use_dotenv: bool = False,
) -> Settings:
    """Resolve settings from defaults, environment and overrides.

    Args:
        overrides: Programmatic values; these win over the environment.
        use_dotenv: Load the nearest ``.env`` (searched from the working
            directory upwards) first. Existing environment
            variables are never replaced by it.

    Raises:
        ConfigurationError: If the merged values fail validation.
    """
    if use_dotenv:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    merged = {**load_env(), **dict(overrides or {})}
    try:
        return Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg")
        raise ConfigurationError(
            f"Invalid setting {loc!r}: {msg}",
            hint=f"Check the {ENV_PREFIX}{loc.upper()} environment variable or override.",
        ) from e


__all__ = ["ENV_PREFIX", "Settings", "load_env", "resolve_settings"]
