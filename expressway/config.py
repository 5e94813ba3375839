from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from .core import EMPTY


class Config(Mapping[str, Any]):
    """
    Read only view over the application settings.

    Registered as the ``config`` service. Calling it looks a key up with an
    optional default, dotted keys walk nested mappings::

        config("database.host", "localhost")
    """

    def __init__(self, settings: Mapping[str, Any] | None = None):
        self._settings: dict[str, Any] = dict(settings or {})

    def __call__(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is EMPTY else value

    def _lookup(self, key: str) -> Any:
        if key in self._settings:
            return self._settings[key]

        current: Any = self._settings
        for part in key.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return EMPTY
            current = current[part]
        return current

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is EMPTY:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not EMPTY

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)

    def __len__(self):
        return len(self._settings)

    def __repr__(self):
        return f"Config({self._settings!r})"
