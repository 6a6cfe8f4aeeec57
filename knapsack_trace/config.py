"""Solver configuration.

All knobs have defaults that reproduce the behaviour of the command-line
tools; callers override them with keyword arguments, a JSON file, or
KNAPSACK_* environment variables.
"""

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from errors import ConfigError


ENV_PREFIX = "KNAPSACK_"


@dataclass(frozen=True)
class SolverConfig:
    """Configuration shared by every solve call.

    Attributes:
        max_attachments: Attachments allowed per main item before package
            enumeration (2^k packages) is refused
        mixed_default_count: Copy ceiling for a type-2 mixed item that does
            not carry an explicit count
        record_trace: Keep one TraceStep per evaluated cell (False only counts)
        enable_logging: Create a SolveLogger writing to log_dir
        log_dir: Directory for log and metrics files
        instance_name: Name used to build the run id of the log files
    """
    max_attachments: int = 16
    mixed_default_count: int = 3
    record_trace: bool = True
    enable_logging: bool = False
    log_dir: str = "logs"
    instance_name: str = "default"

    def __post_init__(self):
        if self.max_attachments < 0:
            raise ConfigError(f"max_attachments must be >= 0, got {self.max_attachments}")
        if self.mixed_default_count < 1:
            raise ConfigError(f"mixed_default_count must be >= 1, got {self.mixed_default_count}")

    def with_overrides(self, **overrides):
        """Return a copy with the given fields replaced."""
        _check_keys(overrides)
        return replace(self, **overrides)

    @classmethod
    def from_json(cls, path):
        """Load a configuration from a JSON object file.

        Args:
            path: Path to a JSON file such as {"max_attachments": 8}

        Returns:
            SolverConfig with defaults for the keys not present

        Raises:
            ConfigError: If the file is not a JSON object or has unknown keys
        """
        path = Path(path)
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"{path}: failed to read/parse JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a JSON object")
        _check_keys(data)
        return cls(**data)

    @classmethod
    def from_env(cls, environ=None):
        """Build a configuration from KNAPSACK_<FIELD> environment variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, f.type, raw)
        return cls(**values)


def _check_keys(data):
    known = {f.name for f in fields(SolverConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {unknown}")


def _coerce(name, kind, raw):
    kind = kind if isinstance(kind, str) else kind.__name__
    if kind == "bool":
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ConfigError(f"{ENV_PREFIX}{name.upper()}: expected a boolean, got {raw!r}")
    if kind == "int":
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigError(f"{ENV_PREFIX}{name.upper()}: expected an integer, got {raw!r}") from e
    return raw


DEFAULT_CONFIG = SolverConfig()
