# popcorn/persisted.py
import json
import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

from popcorn.models import WatchedRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

WATCHED_KEY = "watched"

class PersistedValue(Generic[T]):
    """
    A single value mirrored to a key-value store.

    On construction the stored snapshot is read back; a missing or
    unparseable snapshot falls back to ``initial_value``. Every ``set``
    updates memory first, then writes the whole value through as JSON.
    """

    def __init__(self, storage, key: str, initial_value: T,
                 decode: Optional[Callable[[Any], T]] = None,
                 encode: Optional[Callable[[T], Any]] = None):
        self.storage = storage
        self.key = key
        self._encode = encode or (lambda v: v)
        self._value: T = self._load(initial_value, decode or (lambda raw: raw))

    def _load(self, initial_value: T, decode: Callable[[Any], T]) -> T:
        raw = self.storage.get(self.key)
        if not raw:
            return initial_value
        try:
            return decode(json.loads(raw))
        except (ValueError, TypeError, KeyError) as e:
            logger.debug("discarding unreadable snapshot for key=%s: %s", self.key, e)
            return initial_value

    @property
    def value(self) -> T:
        return self._value

    def set(self, value) -> T:
        """Accepts a new value or a callable taking the previous one."""
        if callable(value):
            value = value(self._value)
        self._value = value
        self.storage.set(self.key, json.dumps(self._encode(value), ensure_ascii=False))
        return value


def _decode_records(raw) -> List[WatchedRecord]:
    if not isinstance(raw, list):
        raise TypeError("watched snapshot must be a list")
    return [WatchedRecord.from_dict(r) for r in raw]

def _encode_records(records: List[WatchedRecord]) -> list:
    return [r.to_dict() for r in records]


class WatchedStore:
    """Ordered watched list, written through to storage on every mutation."""

    def __init__(self, storage, key: str = WATCHED_KEY):
        self._state: PersistedValue[List[WatchedRecord]] = PersistedValue(
            storage, key, [], decode=_decode_records, encode=_encode_records)
        logger.debug("WatchedStore loaded %d records from key=%s", len(self._state.value), key)

    @property
    def items(self) -> List[WatchedRecord]:
        return list(self._state.value)

    def add(self, record: WatchedRecord) -> None:
        self._state.set(lambda watched: watched + [record])
        logger.info("Added watched imdb_id=%s", record.imdb_id)

    def remove(self, imdb_id: str) -> None:
        self._state.set(lambda watched: [w for w in watched if w.imdb_id != imdb_id])
        logger.info("Removed watched imdb_id=%s", imdb_id)

    def get(self, imdb_id: str) -> Optional[WatchedRecord]:
        for w in self._state.value:
            if w.imdb_id == imdb_id:
                return w
        return None

    def __contains__(self, imdb_id: str) -> bool:
        return self.get(imdb_id) is not None

    def __len__(self) -> int:
        return len(self._state.value)
