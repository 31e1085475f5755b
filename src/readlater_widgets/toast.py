"""Transient, auto-dismissing feedback messages."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ToastKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass
class Toast:
    text: str
    kind: ToastKind
    duration: float


class Toaster:
    """Shows at most one toast at a time; a new one replaces the old.

    Auto-dismissal is scheduled on the running event loop. Without a running
    loop the toast stays until ``dismiss()`` is called.
    """

    def __init__(self, default_duration: float = 3.0, error_duration: float = 6.0):
        self.default_duration = default_duration
        self.error_duration = error_duration
        self._current: Toast | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def current(self) -> Toast | None:
        return self._current

    def show(self, text: str, kind: ToastKind = ToastKind.INFO, duration: float | None = None) -> Toast:
        if duration is None:
            duration = self.error_duration if kind is ToastKind.ERROR else self.default_duration
        self._cancel_timer()
        toast = Toast(text=text, kind=kind, duration=duration)
        self._current = toast

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; toast %r will not auto-dismiss", text)
        else:
            self._timer = loop.call_later(duration, self._expire, toast)
        return toast

    def success(self, text: str) -> Toast:
        return self.show(text, ToastKind.SUCCESS)

    def error(self, text: str) -> Toast:
        return self.show(text, ToastKind.ERROR)

    def info(self, text: str) -> Toast:
        return self.show(text, ToastKind.INFO)

    def dismiss(self) -> None:
        self._cancel_timer()
        self._current = None

    def _expire(self, toast: Toast) -> None:
        # a replaced toast's timer must not clear its successor
        if self._current is toast:
            self._current = None
            self._timer = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
