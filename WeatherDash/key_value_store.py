"""Persistent key/value storage for state that outlives the process.

Every operation is fail-soft: read, write and decode errors are logged and
treated as "no value" so callers never have to handle storage failures.
"""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

LAST_LOCATION_KEY = "weather_last_location"
PREFERRED_UNITS_KEY = "weather_preferred_units"

UNITS = ("metric", "imperial", "standard")
DEFAULT_UNITS = "metric"


class KeyValueStoreBase(ABC):
    """Narrow get/set/remove interface over JSON-compatible values."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class MemoryStore(KeyValueStoreBase):
    """Process-local store, used when no state file is configured and in tests."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStoreBase):
    """Store backed by a single JSON object on disk."""

    def __init__(self, path):
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logging.warning(f"Could not read state file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logging.warning(f"Ignoring state file {self.path}: expected a JSON object")
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logging.warning(f"Could not write state file {self.path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class UserPreferences:
    """Unit preference persisted in a key/value store."""

    def __init__(self, store: KeyValueStoreBase):
        self.store = store

    @property
    def units(self) -> str:
        units = self.store.get(PREFERRED_UNITS_KEY)
        if units in UNITS:
            return units
        if units is not None:
            logging.warning(f"Ignoring unknown stored units {units!r}, using {DEFAULT_UNITS}")
        return DEFAULT_UNITS

    def set_units(self, units: str) -> None:
        if units not in UNITS:
            raise ValueError(f"Unknown units {units!r}, expected one of {', '.join(UNITS)}")
        self.store.set(PREFERRED_UNITS_KEY, units)
        logging.info(f"Preferred units set to {units}")
