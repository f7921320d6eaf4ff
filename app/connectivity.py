import logging
import threading
from collections.abc import Callable

from domain.errors import ConnectivityError

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """Live online/offline flag, fed by connectivity-change events.

    Mutating operations consult it synchronously before any remote call;
    nothing is queued while offline.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = bool(online)
        self._lock = threading.Lock()
        self._listeners: list[Callable[[bool], None]] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        with self._lock:
            changed = self._online != bool(online)
            self._online = bool(online)
            listeners = list(self._listeners)
        if changed:
            logger.info("Connectivity changed online=%s", self._online)
            for listener in listeners:
                listener(self._online)

    def subscribe(self, listener: Callable[[bool], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[bool], None]) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def require_online(self, action: str) -> None:
        if not self._online:
            raise ConnectivityError(f"Please go online to {action}")
