"""Dotted-key configuration source with typed accessors."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from exceptions import ConfigFileNotFoundError

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def env_key(key: str, prefix: str = "HARNESS_") -> str:
    """``wait.page.load.timeout`` -> ``HARNESS_WAIT_PAGE_LOAD_TIMEOUT``."""
    return prefix + key.upper().replace(".", "_").replace("-", "_")


def parse_properties(text: str) -> Dict[str, str]:
    """Parse ``key=value`` / ``key: value`` lines; ``#`` and ``!`` start comments."""
    values: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        positions = [p for p in (line.find("="), line.find(":")) if p > 0]
        if not positions:
            values[line] = ""
            continue
        sep = min(positions)
        values[line[:sep].strip()] = line[sep + 1:].strip()
    return values


class ConfigReader:
    """Key -> string lookup with int/float/bool accessors and default fallback.

    Environment variables override file values: ``wait.timeout`` is looked up
    as ``HARNESS_WAIT_TIMEOUT`` first.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        env_prefix: Optional[str] = "HARNESS_",
    ):
        self._values: Dict[str, str] = {k: str(v) for k, v in (values or {}).items()}
        self.env_prefix = env_prefix

    @classmethod
    def from_file(cls, path: Path, env_prefix: Optional[str] = "HARNESS_") -> "ConfigReader":
        path = Path(path)
        if not path.exists():
            raise ConfigFileNotFoundError(str(path))
        return cls(parse_properties(path.read_text(encoding="utf-8")), env_prefix=env_prefix)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if self.env_prefix is not None:
            env_value = os.getenv(env_key(key, self.env_prefix))
            if env_value is not None:
                return env_value
        return self._values.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            return default

    def get_float(self, key: str, default: float) -> float:
        value = self.get(key)
        if value is None:
            return default
        try:
            return float(value.strip())
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key)
        if value is None:
            return default
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        return default

    def keys(self):
        return self._values.keys()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
