"""Configuration loading for apichain."""

from __future__ import annotations

import os
from dataclasses import dataclass

from apichain._internal.errors import ConfigError

MATCH_MODES = ("superset", "exact")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})


@dataclass(frozen=True)
class ApichainConfig:
    """Global apichain configuration.

    Attributes:
        default_base_url: Base URL used to resolve relative endpoint URLs
            when the scenario file does not declare its own ``baseUrl``.
        request_timeout: Per-request timeout in seconds.
        match_mode: Body verification policy, ``"superset"`` or ``"exact"``.
        log_json: Emit structured JSON logs instead of human-readable ones.
    """

    default_base_url: str = ""
    request_timeout: float = 30.0
    match_mode: str = "superset"
    log_json: bool = False


def load_config() -> ApichainConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        APICHAIN_BASE_URL: Default base URL.
        APICHAIN_TIMEOUT: Request timeout in seconds (default: 30.0).
        APICHAIN_MATCH_MODE: ``superset`` or ``exact`` (default: superset).
        APICHAIN_LOG_JSON: Boolean flag for JSON logs (default: off).

    Returns:
        Populated ApichainConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    timeout_str = os.environ.get("APICHAIN_TIMEOUT", "30.0")
    match_mode = os.environ.get("APICHAIN_MATCH_MODE", "superset").strip().lower()
    log_json_str = os.environ.get("APICHAIN_LOG_JSON", "").strip().lower()

    try:
        timeout = float(timeout_str)
    except ValueError:
        msg = f"APICHAIN_TIMEOUT must be a number, got: {timeout_str!r}"
        raise ConfigError(msg) from None

    if timeout <= 0:
        msg = f"APICHAIN_TIMEOUT must be positive, got: {timeout}"
        raise ConfigError(msg)

    if match_mode not in MATCH_MODES:
        msg = f"APICHAIN_MATCH_MODE must be one of {', '.join(MATCH_MODES)}, got: {match_mode!r}"
        raise ConfigError(msg)

    if log_json_str in _TRUE_VALUES:
        log_json = True
    elif log_json_str in _FALSE_VALUES:
        log_json = False
    else:
        msg = f"APICHAIN_LOG_JSON must be a boolean, got: {log_json_str!r}"
        raise ConfigError(msg)

    return ApichainConfig(
        default_base_url=os.environ.get("APICHAIN_BASE_URL", ""),
        request_timeout=timeout,
        match_mode=match_mode,
        log_json=log_json,
    )
