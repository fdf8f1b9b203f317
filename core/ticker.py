"""Cancellable periodic tasks driving live recomputation."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from PySide6.QtCore import QTimer


class Ticker(ABC):
    """A periodic callback that can be started and cancelled."""

    @abstractmethod
    def start(self, callback: Callable[[], None]) -> None:
        """Start calling callback periodically, replacing any previous callback."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Cancel the periodic callback."""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        pass


class QtTicker(Ticker):
    """Ticker driven by a QTimer on the Qt event loop."""

    def __init__(self, interval_ms: int = 100):
        self.interval_ms = interval_ms
        self._timer = QTimer()
        self._timer.setInterval(interval_ms)
        self._callback: Optional[Callable[[], None]] = None
        self._timer.timeout.connect(self._on_timeout)

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        if not self._timer.isActive():
            self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self) -> None:
        if self._callback is not None:
            self._callback()
