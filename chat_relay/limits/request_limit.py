from abc import ABC, abstractmethod
from datetime import datetime, timezone
import logging
import threading
from typing import Callable, Dict, Optional

from .time_windows import TimeWindowHandler

logger = logging.getLogger(__name__)


class RequestLimit(ABC):
    """Base class for per-client request limits over fixed time windows."""
    def __init__(self, *, name: str, amount: int, window_minutes: int = 15):
        if amount < 1:
            raise ValueError("amount must be at least 1")
        self.name = name
        self.amount = amount
        self.window_minutes = window_minutes
        self._lock = threading.Lock()

    def _now(self) -> datetime:
        return datetime.now(tz=timezone.utc)

    def _get_key_suffix(self, time: datetime) -> str:
        """Generate key suffix of the window containing ``time``."""
        return TimeWindowHandler.get_key_suffix(time, self.window_minutes)

    @abstractmethod
    def try_acquire(self, client_key: str) -> bool:
        """Count one request for ``client_key``. False if the quota is used up."""
        raise NotImplementedError("Subclasses must implement try_acquire")

    @abstractmethod
    def get_remaining(self, client_key: str) -> int:
        """Requests ``client_key`` may still make in the current window."""
        raise NotImplementedError("Subclasses must implement get_remaining")

    def seconds_until_reset(self) -> int:
        """Seconds until the current window ends and all quotas refill."""
        return TimeWindowHandler.seconds_until_next(self._now(), self.window_minutes)

    @abstractmethod
    def reset(self) -> None:
        """Forget all counted requests."""
        raise NotImplementedError("Subclasses must implement reset")


class MemoryRequestLimit(RequestLimit):
    """Request limit with in-memory counting.

    Only the current window is kept; counts of earlier windows are dropped as
    soon as a request lands in a new one.
    """
    def __init__(self, *, name: str, amount: int, window_minutes: int = 15,
                 clock: Optional[Callable[[], datetime]] = None):
        super().__init__(name=name, amount=amount, window_minutes=window_minutes)
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._window_key: Optional[str] = None
        self._usage: Dict[str, int] = {}

    def _current_usage(self) -> Dict[str, int]:
        # caller holds self._lock
        window_key = self._get_key_suffix(self._now())
        if window_key != self._window_key:
            if self._window_key is not None:
                logger.debug(f"[LIMIT] '{self.name}' entering window {window_key}, dropping {len(self._usage)} clients")
            self._window_key = window_key
            self._usage = {}
        return self._usage

    def _now(self) -> datetime:
        return self._clock()

    def try_acquire(self, client_key: str) -> bool:
        with self._lock:
            usage = self._current_usage()
            used = usage.get(client_key, 0)
            if used >= self.amount:
                logger.debug(f"[LIMIT] '{self.name}' rejected {client_key}: {used}/{self.amount} in window {self._window_key}")
                return False
            usage[client_key] = used + 1
            return True

    def get_remaining(self, client_key: str) -> int:
        with self._lock:
            return max(self.amount - self._current_usage().get(client_key, 0), 0)

    def reset(self) -> None:
        with self._lock:
            self._window_key = None
            self._usage = {}
            logger.debug(f"[LIMIT] Reset request limit '{self.name}'")
