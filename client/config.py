from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from shared.errors import ConfigError
from shared.log import get_logger
from shared.utils import is_identity, is_ws_url

logger = get_logger(__name__)

DEFAULT_ENDPOINT = "ws://localhost:3000/ws"
DEFAULT_IDENTITY = "michael"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def default_config_path() -> Path:
    return Path.home() / ".wschat" / "config.yaml"


@dataclass(frozen=True)
class ClientConfig:
    endpoint: str = DEFAULT_ENDPOINT
    identity: str = DEFAULT_IDENTITY
    open_timeout: Optional[float] = None
    log_level: Optional[str] = None
    max_entries: Optional[int] = None

    def validate(self) -> 'ClientConfig':
        if not is_ws_url(self.endpoint):
            raise ConfigError(f"endpoint must be a ws:// or wss:// URL, got {self.endpoint!r}")
        if not is_identity(self.identity):
            raise ConfigError("identity must be a non-empty string")
        if self.open_timeout is not None:
            if not _is_number(self.open_timeout) or self.open_timeout <= 0:
                raise ConfigError(f"open_timeout must be a positive number, got {self.open_timeout!r}")
        if self.max_entries is not None:
            if not isinstance(self.max_entries, int) or isinstance(self.max_entries, bool) or self.max_entries < 0:
                raise ConfigError(f"max_entries must be a non-negative integer, got {self.max_entries!r}")
        if self.log_level is not None and not isinstance(self.log_level, str):
            raise ConfigError(f"log_level must be a string, got {self.log_level!r}")
        return self

    def merged(self, overrides: Mapping[str, Any]) -> 'ClientConfig':
        """Copy with every non-None override applied"""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug("No config file at %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error reading {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data


def _parse_timeout(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ConfigError(f"WSCHAT_OPEN_TIMEOUT must be a number, got {value!r}") from e


def _from_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    return {
        "endpoint": environ.get("WSCHAT_SERVER"),
        "identity": environ.get("WSCHAT_IDENTITY"),
        "open_timeout": _parse_timeout(environ.get("WSCHAT_OPEN_TIMEOUT")),
    }


def load_config(
    path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ClientConfig:
    """
    Resolve the client configuration.

    Precedence, lowest first: defaults, YAML file, WSCHAT_* environment
    variables, keyword overrides (CLI options). None never overrides.
    """
    config = ClientConfig()
    config = config.merged(_load_yaml(path or default_config_path()))
    config = config.merged(_from_env(os.environ if environ is None else environ))
    config = config.merged(overrides)
    return config.validate()
