"""Management of named actions that can be started and stopped by name."""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from streamkit.actions import Action, ActionFunc, Actor, FuncActor


class ActionServer:
    """Holds named actions and answers start, stop and overview requests.

    Start and stop requests return the location to redirect to, carrying an
    ``error`` query parameter when the request could not be honoured.
    """

    def __init__(
        self, base_path: str, logger: Optional[logging.Logger] = None
    ) -> None:
        self.base_path = base_path
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._actions: dict[str, Action] = {}

    def attach_action(self, name: str, actor: Actor) -> None:
        """Add an action; a name may only be attached once."""
        with self._lock:
            if name in self._actions:
                raise ValueError(f"source with name '{name}' is already attached")
            self._actions[name] = Action(name, actor)

    def attach_func_action(self, name: str, description: str, func: ActionFunc) -> None:
        """Add an action that runs ``func``."""
        self.attach_action(name, FuncActor(description, func))

    def sorted_actions(self) -> list[Action]:
        """All actions ordered by name."""
        with self._lock:
            return sorted(self._actions.values(), key=lambda action: action.name)

    def start_action(self, name: str, value: str = "") -> str:
        """Start the named action unless it is unknown or running."""
        action = self._action(name)
        if action is None:
            return self._redirect(f"Action '{name}' not found")
        if action.is_running():
            return self._redirect("action already running.")
        action.start(value)
        return self._redirect("")

    def stop_action(self, name: str) -> str:
        """Stop the named action unless it is unknown or not running."""
        action = self._action(name)
        if action is None:
            return self._redirect(f"Action '{name}' not found")
        if not action.is_running():
            return self._redirect("action is not running.")
        action.stop()
        return self._redirect("")

    def index(self, error: Optional[str] = None) -> dict[str, Any]:
        """The parameters of the overview page."""
        return {
            "page_title": "Actions",
            "actions": self.sorted_actions(),
            "error": [error] if error is not None else [],
            "menu_title": "menu title",
            "base_path": self.base_path,
        }

    def _action(self, name: str) -> Optional[Action]:
        with self._lock:
            return self._actions.get(name)

    def _redirect(self, error_message: str) -> str:
        path = self.base_path
        if error_message:
            path += "?error=" + error_message
        return path