"""Helpers for resolving the converter configuration file."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from html_preprocess import DEFAULT_FONT_FAMILY
from renderer import DEFAULT_TIMEOUT_MS

DEFAULT_CONFIG_NAME = "config.json"
CONFIG_ENV_VAR = "HTML_TO_PDF_CONFIG"

DEFAULT_RETRY_ATTEMPTS = 5
FALLBACK_POLICIES = ("fail", "inline")


class ConfigError(Exception):
    """Raised when runtime configuration cannot be loaded."""


@dataclass(frozen=True, slots=True)
class ConverterConfig:
    """Options that control how a conversion executes."""

    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_interval_ms: Optional[int] = None
    extra_arguments: Tuple[str, ...] = ()
    temp_dir: Optional[str] = None
    browser_path: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    font_family: str = DEFAULT_FONT_FAMILY
    fallback_policy: str = "fail"
    convert_pt_to_px: bool = False
    pt_to_px_platform: Optional[str] = None
    page_settings: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.retry_attempts < 1:
            raise ConfigError(
                f"retry_attempts must be at least 1, got {self.retry_attempts}"
            )
        if self.fallback_policy not in FALLBACK_POLICIES:
            raise ConfigError(
                f"fallback_policy must be one of {FALLBACK_POLICIES}, got"
                f" {self.fallback_policy!r}"
            )

    @property
    def retry_interval(self) -> Optional[float]:
        """Return the retry interval in seconds."""

        if self.retry_interval_ms is None:
            return None
        return self.retry_interval_ms / 1000


def _resolve_config_path(path: Optional[str]) -> str:
    """Return the absolute config path, honoring overrides and defaults."""
    env_override = os.environ.get(CONFIG_ENV_VAR)
    candidate = path or env_override or DEFAULT_CONFIG_NAME
    expanded = os.path.expanduser(candidate)
    if os.path.isabs(expanded) and os.path.isfile(expanded):
        return expanded

    search_roots = [os.getcwd(), os.path.dirname(__file__)]
    for root in search_roots:
        resolved = os.path.abspath(os.path.join(root, expanded))
        if os.path.isfile(resolved):
            return resolved

    raise ConfigError(f"Configuration file not found: {candidate}")


def _resolve_path(value: str, base_dir: str) -> str:
    """Resolve ``value`` into an absolute path relative to ``base_dir``."""
    expanded = os.path.expanduser(value)
    if os.path.isabs(expanded):
        return expanded
    return os.path.abspath(os.path.join(base_dir, expanded))


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a JSON config file and normalize any filesystem paths."""
    config_path = _resolve_config_path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as config_file:
            data = json.load(config_file)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {config_path}")

    base_dir = os.path.dirname(config_path)
    resolved: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str) and key.endswith(("_dir", "_path")):
            resolved[key] = _resolve_path(value, base_dir)
        else:
            resolved[key] = value

    return resolved


def config_from_mapping(data: Mapping[str, Any]) -> ConverterConfig:
    """Build a ``ConverterConfig`` from raw config values."""

    known = {item.name for item in fields(ConverterConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: Dict[str, Any] = dict(data)
    try:
        if "retry_attempts" in values:
            values["retry_attempts"] = int(values["retry_attempts"])
        if values.get("retry_interval_ms") is not None:
            values["retry_interval_ms"] = int(values["retry_interval_ms"])
        if "timeout_ms" in values:
            values["timeout_ms"] = int(values["timeout_ms"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric configuration: {exc}") from exc

    arguments = values.get("extra_arguments")
    if isinstance(arguments, str):
        values["extra_arguments"] = (arguments,)
    elif arguments is not None:
        values["extra_arguments"] = tuple(str(item) for item in arguments)

    settings = values.get("page_settings")
    if settings is not None and not isinstance(settings, Mapping):
        raise ConfigError("page_settings must be a JSON object")
    if settings is not None:
        values["page_settings"] = dict(settings)

    return ConverterConfig(**values)


def load_converter_config(
    path: Optional[str] = None, **overrides: Any
) -> ConverterConfig:
    """Load converter options, falling back to defaults without a file.

    A missing file is only an error when ``path`` (or the environment
    override) names one explicitly. ``overrides`` that are ``None`` are
    ignored so CLI flags can be passed straight through.
    """

    try:
        config_path: Optional[str] = _resolve_config_path(path)
    except ConfigError:
        if path or os.environ.get(CONFIG_ENV_VAR):
            raise
        config_path = None

    data = load_config(config_path) if config_path else {}
    config = config_from_mapping(data)
    applied = {key: value for key, value in overrides.items() if value is not None}
    if not applied:
        return config
    if "extra_arguments" in applied:
        applied["extra_arguments"] = tuple(applied["extra_arguments"])
    return replace(config, **applied)


__all__ = [
    "CONFIG_ENV_VAR",
    "ConfigError",
    "ConverterConfig",
    "DEFAULT_RETRY_ATTEMPTS",
    "config_from_mapping",
    "load_config",
    "load_converter_config",
]
