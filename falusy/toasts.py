"""
Toast notifications.

The core never renders anything; it hands Toasts to a ToastSink and the
presentation layer decides how to show them. Blocking toasts are the ones
a UI should keep on screen until dismissed.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from falusy.i18n import DEFAULT_LANGUAGE, translate


class ToastLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Toast(BaseModel):
    """One transient user-facing message."""

    level: ToastLevel
    key: str = Field(..., description="Message catalogue key")
    message: str
    blocking: bool = False


class ToastSink(ABC):
    """Receives toasts; implementations decide how to display them."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        self.language = language

    @abstractmethod
    def show(self, toast: Toast) -> None:
        pass

    def _emit(self, level: ToastLevel, key: str, blocking: bool = False, **params) -> None:
        self.show(Toast(
            level=level,
            key=key,
            message=translate(key, self.language, **params),
            blocking=blocking,
        ))

    def info(self, key: str, **params) -> None:
        self._emit(ToastLevel.INFO, key, **params)

    def success(self, key: str, **params) -> None:
        self._emit(ToastLevel.SUCCESS, key, **params)

    def warning(self, key: str, **params) -> None:
        self._emit(ToastLevel.WARNING, key, **params)

    def error(self, key: str, blocking: bool = False, **params) -> None:
        self._emit(ToastLevel.ERROR, key, blocking=blocking, **params)


class LogToastSink(ToastSink):
    """Writes toasts to the structured log. Default when no UI is attached."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        super().__init__(language)
        self._logger = structlog.get_logger(__name__)

    def show(self, toast: Toast) -> None:
        log = self._logger.warning if toast.level is ToastLevel.ERROR else self._logger.info
        log(
            "toast",
            level=toast.level.value,
            key=toast.key,
            message=toast.message,
            blocking=toast.blocking,
        )


class RecordingToastSink(ToastSink):
    """Keeps every toast in memory, for tests and headless runs."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        super().__init__(language)
        self.toasts: list[Toast] = []

    def show(self, toast: Toast) -> None:
        self.toasts.append(toast)

    def keys(self, level: Optional[ToastLevel] = None) -> list[str]:
        return [t.key for t in self.toasts if level is None or t.level is level]

    def clear(self) -> None:
        self.toasts.clear()
