# Overview: Service-layer primitives for serializing writes to the same product or customer.

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator

from flask import current_app
from sqlalchemy import text

from ..extensions import db


EXTENSION_KEY = "batani.keyed_locks"


class KeyedLocks:
    """
    One reentrant mutex per key (product id, phone number, ...), created on demand.

    hold() acquires its keys in sorted order so two writers asking for the
    same pair of keys cannot deadlock. A key's mutex is dropped from the
    registry once no thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, number of hold() calls holding or waiting on it]
        self._locks: dict[Hashable, list] = {}

    def _checkout(self, key: Hashable) -> threading.RLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        ordered = sorted({k for k in keys if k is not None}, key=repr)
        checked_out = []
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                checked_out.append(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in reversed(checked_out):
                self._checkin(key)


def init_keyed_locks(app) -> KeyedLocks:
    locks = KeyedLocks()
    app.extensions[EXTENSION_KEY] = locks
    return locks


def keyed_locks() -> KeyedLocks:
    """Lock registry owned by the current app (one per process/app instance)."""
    return current_app.extensions[EXTENSION_KEY]


def product_key(product_id: str) -> tuple[str, str]:
    return ("product", product_id)


def phone_key(phone_number: str) -> tuple[str, str]:
    return ("phone", phone_number)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Open the write transaction up front.

    On SQLite this takes the database write lock immediately (BEGIN IMMEDIATE)
    so a second writer waits before its stock check instead of after it.
    Other engines rely on lock_for_update row locks.
    """
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_conn = db.session.connection().connection.dbapi_connection
    if not dbapi_conn.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))
