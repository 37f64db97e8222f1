"""An overview page listing the attached components and where they live."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Component:
    """A named component reachable under ``base_path``."""

    name: str
    base_path: str


class IndexServer:
    """Collects components and builds the parameters of the index page."""

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path
        self._lock = threading.Lock()
        self._components: list[Component] = []

    def add_component(self, path_provider: Any, name: str) -> None:
        """Add a component, taking its path from ``path_provider.base_path``."""
        with self._lock:
            self._components.append(Component(name, path_provider.base_path))

    def index(self) -> dict[str, Any]:
        """The parameters of the index page."""
        with self._lock:
            components = list(self._components)
        return {"base_path": self.base_path, "components": components}