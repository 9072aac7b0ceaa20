"""Background execution of service calls on a Qt thread pool."""
from __future__ import annotations

from typing import Any, Callable

from PySide6.QtCore import QObject, QRunnable, Signal


class WorkerSignals(QObject):
    finished = Signal(object)
    error = Signal(str)
    message = Signal(str)


class ServiceWorker(QRunnable):
    """Run ``fn`` off the GUI thread.

    With ``with_messages`` the callable receives ``log_callback``, which relays
    progress text back to the GUI thread through ``signals.message``.
    """

    def __init__(self, fn: Callable[..., Any], *args: Any, with_messages: bool = False, **kwargs: Any) -> None:
        super().__init__()
        self._fn = fn
        self._args = args
        self._kwargs = kwargs
        self.signals = WorkerSignals()
        if with_messages:
            self._kwargs["log_callback"] = self.signals.message.emit
        self.setAutoDelete(False)

    def run(self) -> None:
        try:
            result = self._fn(*self._args, **self._kwargs)
        except Exception as exc:
            self.signals.error.emit(str(exc))
            return
        self.signals.finished.emit(result)
