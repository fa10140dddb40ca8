"""Run configuration.

Settings resolve in order: defaults, an optional YAML file, ``MOQ_INTEROP_*``
environment variables, then explicit overrides (usually CLI flags). The
resulting ``RunConfig`` is frozen and passed explicitly to the pairing engine,
the runner and the orchestrator, so several runs can coexist in one process.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

MODES = ("auto", "docker", "remote")
ENV_PREFIX = "MOQ_INTEROP_"
DEFAULT_RELAY_PORT = 4443  # MOQT_PORT in the relay container contract


class ConfigError(Exception):
    """Raised when run configuration is missing or invalid."""


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings for one interop run."""

    current_target: str
    workers: int = 4
    timeout: float = 30.0
    verbose: bool = False
    output_limit: int = 1 << 20
    mode: str = "auto"
    transport: str | None = None
    docker_network: str = "moq-interop"
    relay_port: int = DEFAULT_RELAY_PORT
    relay_host: str = "{identifier}"
    terminate_grace: float = 2.0
    poll_interval: float = 0.05

    def __post_init__(self) -> None:
        if not self.current_target:
            raise ConfigError("current_target is required")
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.output_limit < 1:
            raise ConfigError(f"output_limit must be positive, got {self.output_limit}")
        if self.mode not in MODES:
            raise ConfigError(f"mode must be one of {', '.join(MODES)}, got {self.mode!r}")
        if not 0 < self.relay_port < 65536:
            raise ConfigError(f"relay_port out of range: {self.relay_port}")
        if self.terminate_grace < 0 or self.poll_interval <= 0:
            raise ConfigError("terminate_grace and poll_interval must be positive")

    def replace(self, **changes: Any) -> RunConfig:
        return dataclasses.replace(self, **changes)


_FIELDS = {f.name: f for f in dataclasses.fields(RunConfig)}
_BOOL_TRUE = {"1", "true", "yes", "on"}
_BOOL_FALSE = {"0", "false", "no", "off", ""}


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw file/env value to the field's type."""
    if value is None:
        return None
    kind = _FIELDS[name].type
    try:
        if kind == "bool":
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in _BOOL_TRUE:
                return True
            if text in _BOOL_FALSE:
                return False
            raise ValueError(value)
        if kind == "int":
            return int(value)
        if kind == "float":
            return float(value)
        return str(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {name}: {value!r}") from None


def read_config_file(path: Path | str) -> dict[str, Any]:
    """Read run settings from a YAML mapping."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping of settings")
    unknown = sorted(set(data) - set(_FIELDS))
    if unknown:
        raise ConfigError(f"{path}: unknown setting(s): {', '.join(unknown)}")
    return {name: _coerce(name, value) for name, value in data.items()}


def read_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``MOQ_INTEROP_<FIELD>`` settings from *env*."""
    values = {}
    for name in _FIELDS:
        key = ENV_PREFIX + name.upper()
        if key in env:
            values[name] = _coerce(name, env[key])
    return values


def load_run_config(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    fallback_target: str | None = None,
    **overrides: Any,
) -> RunConfig:
    """Resolve a ``RunConfig``.

    *fallback_target* (typically the registry's declared ``current_target``)
    is used only when nothing else sets one. Overrides whose value is ``None``
    are ignored, so CLI flags that were not given fall through to the file and
    environment.
    """
    values: dict[str, Any] = {}
    if fallback_target:
        values["current_target"] = fallback_target
    if path is not None:
        values.update(read_config_file(path))
    values.update(read_env(os.environ if env is None else env))

    unknown = sorted(set(overrides) - set(_FIELDS))
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")
    values.update({k: v for k, v in overrides.items() if v is not None})

    if not values.get("current_target"):
        raise ConfigError(
            "No current target: pass --target, set current_target in the config "
            f"file or registry, or export {ENV_PREFIX}CURRENT_TARGET"
        )
    return RunConfig(**values)
