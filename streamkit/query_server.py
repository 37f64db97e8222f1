"""Lookup of keys in named sources, with human-readable rendering of the values."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Optional

Getter = Callable[[str], Any]
Humanizer = Callable[[Any], str]


def default_humanizer(value: Any) -> str:
    """Render ``value`` as indented JSON."""
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)


class QueryServer:
    """Holds named getters and builds the parameters of query pages."""

    def __init__(
        self,
        base_path: str,
        humanizer: Humanizer = default_humanizer,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_path = base_path
        self.humanizer = humanizer
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._sources: dict[str, Getter] = {}

    def attach_source(self, name: str, getter: Getter) -> None:
        """Add a source; a name may only be attached once."""
        with self._lock:
            if name in self._sources:
                raise ValueError(f"source with name '{name}' is already attached")
            self._sources[name] = getter

    def source_names(self) -> list[str]:
        """The names of all sources in order."""
        with self._lock:
            return sorted(self._sources)

    def index(self) -> dict[str, Any]:
        """The parameters of the overview page."""
        return self._finish(self._base_params())

    def source(self, name: str) -> dict[str, Any]:
        """The parameters of the page of one source."""
        params = self._base_params()
        if self._getter(name) is None:
            params["warning"] = f"Source '{name}' not found!"
            return self._finish(params)
        params["selected_source"] = name
        return self._finish(params)

    def key(self, name: str, key: str) -> dict[str, Any]:
        """The parameters of the page showing ``key`` looked up in source ``name``."""
        params = self._base_params()
        getter = self._getter(name)
        if getter is None:
            params["error"] = f"Source '{name}' not found!"
            return self._finish(params)
        params["selected_source"] = name

        try:
            value = getter(key.strip())
        except Exception as exc:
            params["error"] = f"error getting key: {exc}"
            return self._finish(params)
        params["key"] = key

        if value is None:
            params["warning"] = f"Key '{key}' not found!"
            return self._finish(params)
        try:
            params["value"] = self.humanizer(value)
        except Exception as exc:
            params["error"] = f"error marshaling value: {exc}"
        return self._finish(params)

    def _getter(self, name: str) -> Optional[Getter]:
        with self._lock:
            return self._sources.get(name)

    def _base_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"page_title": "Overview"}
        names = self.source_names()
        if names:
            params["selected_source"] = names[0]
            params["sources"] = names
        return params

    def _finish(self, params: dict[str, Any]) -> dict[str, Any]:
        params["menu_title"] = "menu title"
        params["base_path"] = self.base_path
        return params