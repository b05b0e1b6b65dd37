# popcorn/keys.py
import itertools
import logging
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class KeyEventBus:
    """Process-wide keydown dispatch (the document in the browser app)."""

    def __init__(self):
        self._listeners: Dict[int, Callable[[str], None]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, callback: Callable[[str], None]) -> int:
        token = next(self._ids)
        self._listeners[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        self._listeners.pop(token, None)

    def dispatch(self, code: str) -> None:
        for callback in list(self._listeners.values()):
            callback(code)

    def __len__(self) -> int:
        return len(self._listeners)


class KeyBinder:
    """
    Binds one key code to ``action`` while bound. Holds at most one
    subscription on the bus; ``bind`` on an already bound binder replaces it.
    Key codes compare case-insensitively ("Escape" == "escape").
    """

    def __init__(self, bus: KeyEventBus, key: str, action: Callable[[], None]):
        self.bus = bus
        self.key = key
        self.action = action
        self._token: Optional[int] = None

    def _on_key(self, code: str) -> None:
        if code.lower() == self.key.lower():
            self.action()

    def bind(self) -> "KeyBinder":
        self.unbind()
        self._token = self.bus.subscribe(self._on_key)
        logger.debug("bound key %s", self.key)
        return self

    def unbind(self) -> None:
        if self._token is not None:
            self.bus.unsubscribe(self._token)
            self._token = None
            logger.debug("unbound key %s", self.key)

    @property
    def is_bound(self) -> bool:
        return self._token is not None

    def __enter__(self):
        return self.bind()

    def __exit__(self, exc_type, exc, tb):
        self.unbind()
