#!/usr/bin/env python3
"""
KVCAST CONFIGURATION
--------------------
Runtime settings for the sender and the listener. Values come from an
optional YAML file and are then overridden by command-line flags.

Example kvcast.yaml:

    delay: 0.5
    buffer_size: 4096
    ttl: 1
    timeout: 1.0
    debug: false
    log_level: INFO

Author: KvCast Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ruamel.yaml import YAML, YAMLError

from kvcast.core.errors import ConfigError
from kvcast.parsing.exporter import MAX_DATAGRAM_BYTES

logger = logging.getLogger("kvcast.config")


@dataclass(frozen=True)
class KvCastConfig:
    delay: float = 1.0                      # Seconds between sent datagrams
    buffer_size: int = MAX_DATAGRAM_BYTES   # Receive buffer / datagram limit
    ttl: int = 1                            # Multicast TTL for the sender
    timeout: float = 1.0                    # Listener recv timeout (keeps Ctrl+C responsive)
    unicast: bool = False                   # Listener binds without joining a group
    debug: bool = False                     # Pretty-print JSON instead of columns
    log_level: str = "INFO"

    def with_overrides(self, **overrides: Any) -> "KvCastConfig":
        """Returns a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


_FIELD_TYPES = {f.name: f.type for f in fields(KvCastConfig)}


def _coerce(key: str, value: Any) -> Any:
    expected = _FIELD_TYPES[key]
    if expected is bool:
        if not isinstance(value, bool):
            raise ConfigError(f"'{key}' must be true or false")
        return value
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"'{key}' must be an integer")
        return value
    if expected is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"'{key}' must be a number")
        return float(value)
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def load_config(path: Optional[Union[str, Path]] = None) -> KvCastConfig:
    """
    Loads settings from a YAML mapping. A None path yields the defaults.

    Raises:
        ConfigError: Unreadable file, invalid YAML, unknown key or bad type.
    """
    if path is None:
        return KvCastConfig()

    config_path = Path(path)
    try:
        data = YAML(typ='safe').load(config_path.read_text(encoding='utf-8'))
    except OSError as e:
        raise ConfigError(f"Unable to read config {config_path}: {e}")
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")

    if data is None:
        return KvCastConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in _FIELD_TYPES:
            raise ConfigError(f"Unknown config key '{key}' in {config_path}")
        values[key] = _coerce(key, value)

    if values.get("delay", 0) < 0:
        raise ConfigError("'delay' must not be negative")

    logger.debug(f"Loaded config from {config_path}: {values}")
    return KvCastConfig(**values)
