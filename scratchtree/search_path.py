"""
search_path.py

Responsibility: Own the process-wide search-path variable (GOPATH by default).

The variable exists twice: as an in-process cached value that code in this
process reads, and as the environment variable inherited by child processes.
Both copies must agree before a workspace prepends itself, and both are
written together.

`SearchPathVariable` takes the environment mapping as a dependency so tests
can pass a plain dict instead of touching `os.environ`.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import MutableMapping

from scratchtree.errors import ConfigurationMismatchError

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE = "GOPATH"


class SearchPathVariable:
    def __init__(
        self,
        name: str = DEFAULT_VARIABLE,
        *,
        environ: MutableMapping[str, str] | None = None,
        cached: str | None = None,
    ) -> None:
        self.name = name
        self._environ = os.environ if environ is None else environ
        # Snapshot at construction, like a toolchain's default build context.
        self.cached = self._environ.get(name, "") if cached is None else cached
        self._lock = threading.Lock()

    def get(self) -> str:
        return self.cached

    def environ_value(self) -> str | None:
        return self._environ.get(self.name)

    def set(self, value: str | None) -> None:
        """
        Write `value` to the cache and the environment.

        `None` removes the variable from the environment and empties the cache.
        """
        self.cached = value or ""
        if value is None:
            self._environ.pop(self.name, None)
        else:
            self._environ[self.name] = value

    def prepend(self, entry: str) -> str | None:
        """
        Prepend `entry` and return the previous environment value (None if unset).

        Raises ConfigurationMismatchError, without mutating anything, if the
        cached value and the environment value disagree.
        """
        with self._lock:
            current = self.environ_value()
            if (current or "") != self.cached:
                raise ConfigurationMismatchError(
                    f"{self.name} {current!r} doesn't match cached {self.name} {self.cached!r}"
                )
            self.set(entry + os.pathsep + self.cached)
            logger.debug("%s set to %s", self.name, self.cached)
            return current

    def restore(self, original: str | None) -> None:
        with self._lock:
            self.set(original)
            logger.debug("%s restored to %r", self.name, original)


_variables: dict[str, SearchPathVariable] = {}


def default_search_path() -> SearchPathVariable:
    """The shared process-wide instance for DEFAULT_VARIABLE."""
    return search_path_for(DEFAULT_VARIABLE)


def search_path_for(name: str) -> SearchPathVariable:
    """
    Return the shared process-wide instance for variable `name`.

    Instances are created lazily and reused so every workspace in the process
    sees the same cached value.
    """
    if name not in _variables:
        _variables[name] = SearchPathVariable(name)
    return _variables[name]
