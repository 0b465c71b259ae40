from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from filelock import FileLock
from tinydb import Query, TinyDB

from eformmaker.config import LS_KEY
from eformmaker.utils import now_utc, to_iso

logger = logging.getLogger(__name__)


def storage_key(form_id: str | None = None) -> str:
    return f"{LS_KEY}-{form_id}" if form_id else LS_KEY


class LocalStore:
    """Builder snapshots cached on disk between editing sessions."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(f"{self._path}.lock")

    @contextmanager
    def _db(self) -> Iterator[TinyDB]:
        with self._lock:
            db = TinyDB(self._path)
            try:
                yield db
            finally:
                db.close()

    def read(self, form_id: str | None = None) -> dict[str, Any] | None:
        key = storage_key(form_id)
        try:
            with self._db() as db:
                item = db.table("builder").get(Query().key == key)
        except (OSError, ValueError):
            logger.warning("Could not read local draft %s", key, exc_info=True)
            return None
        if not item or not isinstance(item.get("data"), dict):
            return None
        return item["data"]

    def write(self, data: dict[str, Any] | None, form_id: str | None = None) -> bool:
        key = storage_key(form_id)
        record = {"key": key, "data": data or {}, "saved_at": to_iso(now_utc())}
        try:
            with self._db() as db:
                db.table("builder").upsert(record, Query().key == key)
        except (OSError, ValueError, TypeError):
            logger.warning("Could not write local draft %s", key, exc_info=True)
            return False
        return True

    def clear(self, form_id: str | None = None) -> None:
        key = storage_key(form_id)
        try:
            with self._db() as db:
                db.table("builder").remove(Query().key == key)
        except (OSError, ValueError):
            logger.warning("Could not clear local draft %s", key, exc_info=True)
