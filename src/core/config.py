"""Runtime configuration model for DOMS ingest.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
import os
from pathlib import Path
from typing import Mapping, cast

from core.constants import (
    DEFAULT_FEDORA_URL,
    DEFAULT_FEDORA_USERNAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PID_NAMESPACE,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    NEWSPAPER_COLLECTION,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import DomsConfigError, DomsDependencyError


@dataclass(frozen=True)
class DomsConfig:
    """Validated runtime configuration.

    Attributes:
        fedora_url: Base URL of the Fedora REST API.
        username: Fedora user for HTTP basic auth.
        password: Fedora password for HTTP basic auth.
        pid_generator_url: Optional external PID generator endpoint.
        pid_namespace: Namespace used when Fedora generates PIDs.
        request_timeout: Per-request timeout in seconds.
        collections: Collections every new object is added to.
        log_level: Minimum structured log level.
    """

    fedora_url: str = DEFAULT_FEDORA_URL
    username: str = DEFAULT_FEDORA_USERNAME
    password: str = ""
    pid_generator_url: str | None = None
    pid_namespace: str = DEFAULT_PID_NAMESPACE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    collections: tuple[str, ...] = (NEWSPAPER_COLLECTION,)
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "DomsConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            DomsConfigError: If environment values are invalid.
        """
        collections_value = os.getenv("DOMS_COLLECTIONS")
        return cls(
            fedora_url=os.getenv("DOMS_URL", DEFAULT_FEDORA_URL).rstrip("/"),
            username=os.getenv("DOMS_USERNAME", DEFAULT_FEDORA_USERNAME),
            password=os.getenv("DOMS_PASSWORD", ""),
            pid_generator_url=os.getenv("DOMS_PIDGENERATOR_URL") or None,
            pid_namespace=os.getenv("DOMS_PID_NAMESPACE", DEFAULT_PID_NAMESPACE),
            request_timeout=_parse_timeout(
                os.getenv("DOMS_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT_SECONDS)), "DOMS_TIMEOUT"
            ),
            collections=(
                _parse_collections(collections_value)
                if collections_value is not None
                else (NEWSPAPER_COLLECTION,)
            ),
            log_level=_parse_log_level(os.getenv("DOMS_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "DomsConfig":
        """Build config from a YAML mapping, using env values as defaults.

        Args:
            config_path: Path to a YAML file with config field keys.

        Returns:
            A validated config object.

        Raises:
            DomsConfigError: If the file is missing, invalid, or has unknown keys.
            DomsDependencyError: If PyYAML is unavailable.
        """
        payload = _load_yaml_mapping(config_path)
        known_keys = {config_field.name for config_field in fields(cls)}
        unknown_keys = sorted(set(payload) - known_keys)
        if unknown_keys:
            raise DomsConfigError(
                f"Unknown config keys in {config_path}: {', '.join(unknown_keys)}. "
                f"Supported keys: {', '.join(sorted(known_keys))}."
            )
        base = cls.from_env()
        return cls(
            fedora_url=str(payload.get("fedora_url", base.fedora_url)).rstrip("/"),
            username=str(payload.get("username", base.username)),
            password=str(payload.get("password", base.password)),
            pid_generator_url=_optional_str(
                payload.get("pid_generator_url", base.pid_generator_url)
            ),
            pid_namespace=str(payload.get("pid_namespace", base.pid_namespace)),
            request_timeout=_parse_timeout(
                str(payload.get("request_timeout", base.request_timeout)), "request_timeout"
            ),
            collections=_coerce_collections(payload.get("collections", base.collections)),
            log_level=_parse_log_level(str(payload.get("log_level", base.log_level))),
        )


def _load_yaml_mapping(config_path: str) -> Mapping[str, object]:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise DomsDependencyError(
            "YAML config support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise DomsConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise DomsConfigError(
            f"Failed to read config at {config_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise DomsConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise DomsConfigError(
            f"Invalid config at {config_file}: expected a mapping of config keys."
        )
    return cast(Mapping[str, object], payload)


def _parse_timeout(raw_value: str, source_name: str) -> float:
    """Parse a positive timeout in seconds.

    Args:
        raw_value: Raw string value.
        source_name: Env var or config key, for error messages.

    Returns:
        Parsed timeout.

    Raises:
        DomsConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise DomsConfigError(
            f"Invalid {source_name} value: expected number of seconds, got '{raw_value}'."
        ) from error
    if timeout <= 0:
        raise DomsConfigError(
            f"Invalid {source_name} value: timeout must be positive, got {timeout}."
        )
    return timeout


def _parse_collections(raw_value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


def _coerce_collections(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        return _parse_collections(value)
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    raise DomsConfigError(
        f"Invalid collections value: expected list or comma-separated string, got {value!r}."
    )


def _parse_log_level(raw_value: str) -> str:
    level = raw_value.strip().lower()
    if level not in SUPPORTED_LOG_LEVELS:
        raise DomsConfigError(
            f"Invalid log level '{raw_value}'. Supported: {', '.join(SUPPORTED_LOG_LEVELS)}."
        )
    return level


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
