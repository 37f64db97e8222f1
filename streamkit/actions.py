"""Named, restartable background actions run in their own thread."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

ActionFunc = Callable[[threading.Event, str], Any]


class Actor(Protocol):
    """Something an action can run: it has a description and a run method."""

    description: str

    def run_action(self, cancel: threading.Event, value: str) -> Any:
        ...


class FuncActor:
    """An actor that runs a plain function.

    The function receives an event that is set when the action is stopped,
    and the value the action was started with. It reports failure by raising.
    """

    def __init__(self, description: str, func: ActionFunc) -> None:
        self.description = description
        self._func = func

    def run_action(self, cancel: threading.Event, value: str) -> Any:
        """Run the wrapped function."""
        return self._func(cancel, value)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat(timespec="seconds")
    return text[:-6] + "Z" if text.endswith("+00:00") else text


class Action:
    """Runs an actor in a background thread and records when and how it ran."""

    def __init__(self, name: str, actor: Actor) -> None:
        self.name = name
        self.actor = actor
        self._lock = threading.RLock()
        self._cancel: Optional[threading.Event] = None
        self._done: Optional[threading.Event] = None
        self._started: Optional[datetime] = None
        self._finished: Optional[datetime] = None
        self._error: Optional[BaseException] = None

    @property
    def description(self) -> str:
        """The actor's description."""
        return self.actor.description

    @property
    def error(self) -> Optional[BaseException]:
        """The exception raised by the last finished run, if any."""
        with self._lock:
            return self._error

    def is_running(self) -> bool:
        """Whether the action has been started and has not finished yet."""
        with self._lock:
            return self._done is not None and not self._done.is_set()

    def start_time(self) -> str:
        """The RFC 3339 start time, or ``not started``."""
        with self._lock:
            if self._started is None:
                return "not started"
            return _format_time(self._started)

    def finished_time(self) -> str:
        """The RFC 3339 finish time, or ``not finished``."""
        with self._lock:
            if self._finished is None:
                return "not finished"
            return _format_time(self._finished)

    def start(self, value: str) -> None:
        """Start the action in a new thread, stopping a running one first."""
        self.stop()

        with self._lock:
            self._started = datetime.now().astimezone()
            self._finished = None
            cancel = threading.Event()
            done = threading.Event()
            self._cancel = cancel
            self._done = done

        def run() -> None:
            error: Optional[BaseException] = None
            try:
                self.actor.run_action(cancel, value)
            except Exception as exc:
                error = exc
            with self._lock:
                self._finished = datetime.now().astimezone()
                self._error = error
            done.set()
            cancel.set()

        threading.Thread(target=run, name=f"action-{self.name}", daemon=True).start()

    def stop(self) -> None:
        """Signal the action to stop and wait until it has finished."""
        with self._lock:
            done = self._done
            if self._cancel is not None:
                self._cancel.set()
        if done is not None:
            done.wait()