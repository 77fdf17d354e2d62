"""
Typed key-value store for the app's serialized collections.

Each StoreKey pairs a row name in store_entries with a pydantic TypeAdapter,
so callers always get validated records back and never raw JSON.
"""

import logging
from collections import defaultdict
from typing import Callable, Generic, TypeVar

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from safecheck.models import StoreEntry
from safecheck.services.schemas import (
    Family,
    Favorite,
    HistoryEntry,
    Profile,
    Selection,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreKey(Generic[T]):
    """Name, type and default for one stored collection."""

    def __init__(self, name: str, type_: type, default: Callable[[], T]):
        self.name = name
        self.adapter: TypeAdapter = TypeAdapter(type_)
        self.default = default

    def __repr__(self) -> str:
        return f"StoreKey({self.name!r})"


PROFILES: StoreKey[list[Profile]] = StoreKey("profiles", list[Profile], list)
FAMILIES: StoreKey[list[Family]] = StoreKey("families", list[Family], list)
SELECTION: StoreKey[Selection] = StoreKey("selection", Selection, Selection)
HISTORY: StoreKey[list[HistoryEntry]] = StoreKey("history", list[HistoryEntry], list)
FAVORITES: StoreKey[list[Favorite]] = StoreKey("favorites", list[Favorite], list)


Subscriber = Callable[[object], None]


class AppStore:
    """Get/set/subscribe over store_entries, one row per StoreKey."""

    def __init__(self, db: Session):
        self.db = db
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def get(self, key: StoreKey[T]) -> T:
        entry = self.db.get(StoreEntry, key.name)
        if entry is None:
            return key.default()
        return key.adapter.validate_python(entry.value)

    def _stage(self, key: StoreKey[T], value: T) -> None:
        payload = key.adapter.dump_python(value, mode="json", by_alias=True)

        entry = self.db.get(StoreEntry, key.name)
        if entry is None:
            self.db.add(StoreEntry(key=key.name, value=payload))
        else:
            entry.value = payload

    def set(self, key: StoreKey[T], value: T) -> None:
        self.set_many((key, value))

    def set_many(self, *items: tuple[StoreKey, object]) -> None:
        """
        Write several keys in one transaction.

        Either every key is stored or none is. Subscribers run after the commit.
        """
        try:
            for key, value in items:
                self._stage(key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for key, value in items:
            logger.debug("Store key %s updated", key.name)
            for callback in list(self._subscribers[key.name]):
                callback(value)

    def subscribe(self, key: StoreKey[T], callback: Callable[[T], None]) -> Callable[[], None]:
        """
        Call callback with the new value after every committed write of key.

        Returns:
            A function that removes the subscription
        """
        self._subscribers[key.name].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[key.name]:
                self._subscribers[key.name].remove(callback)

        return unsubscribe
