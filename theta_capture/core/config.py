"""Client configuration loaded from ``key = value`` text files.

Example ``theta.txt``::

    # camera access point
    endpoint = http://192.168.1.1
    request_timeout = 10.0
    check_state_interval = 1.0   # seconds between state polls
    check_state_retry = 3
    idle_confirm_count = 2
    camera_model = THETA_X
    log_level = debug
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Union

import aiofiles

from .logging_utils import get_module_logger

logger = get_module_logger("Config")

_TRUE_VALUES = ("true", "yes", "on", "1")


@dataclass
class ThetaClientConfig:
    """Settings shared by the gateway, the status poller and capture sessions."""

    endpoint: str = "http://192.168.1.1"
    request_timeout: float = 10.0
    check_state_interval: float = 1.0
    check_state_retry: int = 3
    idle_confirm_count: int = 2
    check_status_command_interval: float = 1.0
    camera_model: str = ""
    log_level: str = "info"
    log_file: str = ""

    extra: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, values: Dict[str, str]) -> "ThetaClientConfig":
        """Build a config from raw string values, coercing known keys."""
        defaults = cls()
        known = {f.name for f in fields(cls) if f.name != "extra"}
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, str] = {}
        for key, raw in values.items():
            if key in known:
                kwargs[key] = _coerce(raw, getattr(defaults, key), key)
            else:
                extra[key] = raw
        config = cls(**kwargs, extra=extra)
        config.validate()
        return config

    def validate(self) -> None:
        if not self.endpoint.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must be an http(s) URL, got '{self.endpoint}'")
        if self.check_state_retry < 1:
            raise ValueError("check_state_retry must be at least 1")
        if self.idle_confirm_count < 1:
            raise ValueError("idle_confirm_count must be at least 1")
        for name in ("request_timeout", "check_state_interval", "check_status_command_interval"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(raw: str, default: Any, key: str) -> Any:
    if isinstance(default, bool):
        return raw.lower() in _TRUE_VALUES
    if isinstance(default, int):
        try:
            return int(raw, 0)
        except ValueError:
            logger.warning("Failed to parse %s='%s' as int, using default", key, raw)
            return default
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError:
            logger.warning("Failed to parse %s='%s' as float, using default", key, raw)
            return default
    return raw


def parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Parse ``key = value`` lines, ignoring blanks, comments and bad lines."""
    values: Dict[str, str] = {}
    for line_num, raw_line in enumerate(lines, 1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            logger.warning("Invalid config line %d (missing '='): %s", line_num, line)
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.split("#", 1)[0].strip() if "#" in value else value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key] = value
    return values


def load_config(path: Union[str, Path]) -> ThetaClientConfig:
    """Load a config file; a missing file yields the defaults."""
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Config file not found at %s, using defaults", config_path)
        return ThetaClientConfig()

    with open(config_path, "r", encoding="utf-8") as fh:
        values = parse_config_lines(fh)
    logger.info("Loaded config from %s (%d values)", config_path, len(values))
    return ThetaClientConfig.from_mapping(values)


async def load_config_async(path: Union[str, Path]) -> ThetaClientConfig:
    """Async variant of :func:`load_config` reading through aiofiles."""
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Config file not found at %s, using defaults", config_path)
        return ThetaClientConfig()

    async with aiofiles.open(config_path, "r", encoding="utf-8") as fh:
        content = await fh.read()
    values = parse_config_lines(content.splitlines())
    logger.info("Loaded config from %s (%d values)", config_path, len(values))
    return ThetaClientConfig.from_mapping(values)


__all__ = [
    "ThetaClientConfig",
    "load_config",
    "load_config_async",
    "parse_config_lines",
]
