"""
auth/storage.py -- Durable client-side storage for the serialized Session.

Two layers:
  LocalStorage    -- a string key/value store with the browser localStorage
                     surface (get_item / set_item / remove_item), backed by
                     SQLAlchemy Core over SQLite so it survives restarts.
  SessionStorage  -- owns exactly one key in that store and (de)serializes the
                     Session as one JSON object {user, token}.

Fail-open contract: SessionStorage.load() never raises on bad content. An
entry that is not valid JSON, or is JSON of the wrong shape, is deleted and
reported as absent. The caller then starts unauthenticated.

Security:
  All queries use bound parameters. The stored token is never logged.

DB path: auth/pawconnect_storage.db unless STORAGE_URL is set.

Layer rule: no imports from web/.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, delete, event, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine

from auth.models import Session
from auth.schemas import StoredSession, UserPayload

logger = logging.getLogger("pawconnect.storage")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'pawconnect_storage.db'}"

SESSION_KEY = "pawconnect_auth"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_local_storage = Table(
    "local_storage",
    _metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so the CLI and the web shell can share the file."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Key/value store
# ---------------------------------------------------------------------------


class LocalStorage:
    """String key/value store persisted in SQLite.

    Usage:
        storage = LocalStorage()
        storage.set_item("theme", "dark")
        storage.get_item("theme")   # "dark"
        storage.remove_item("theme")
        storage.close()
    """

    def __init__(self, db_url: str = "") -> None:
        db_url = db_url or _DEFAULT_DB_URL
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def get_item(self, key: str) -> Optional[str]:
        with self.engine.connect() as conn:
            return conn.execute(select(_local_storage.c.value).where(_local_storage.c.key == key)).scalar()

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any existing value."""
        stmt = sqlite_insert(_local_storage).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(index_elements=["key"], set_={"value": value})
        with self.engine.connect() as conn:
            conn.execute(stmt)
            conn.commit()

    def remove_item(self, key: str) -> None:
        """Delete key. Deleting a missing key is not an error."""
        with self.engine.connect() as conn:
            conn.execute(delete(_local_storage).where(_local_storage.c.key == key))
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Session persistence
# ---------------------------------------------------------------------------


class SessionStorage:
    """Persistence Layer for the one process-wide Session."""

    def __init__(self, storage: LocalStorage, key: str = SESSION_KEY) -> None:
        self._storage = storage
        self.key = key

    def save(self, session: Session) -> None:
        """Serialize session under the fixed key, overwriting any prior value."""
        blob = {
            "user": UserPayload.from_user(session.user).model_dump(mode="json", by_alias=True, exclude_none=True),
            "token": session.token,
        }
        self._storage.set_item(self.key, json.dumps(blob))

    def load(self) -> Optional[Session]:
        """Return the stored Session, or None if absent, empty or corrupt.

        Corrupt entries are removed so the next load does not hit them again.
        """
        raw = self._storage.get_item(self.key)
        if raw is None:
            return None
        try:
            stored = StoredSession.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable stored session (%d error(s))", e.error_count())
            self._storage.remove_item(self.key)
            return None
        if stored.user is None or stored.token is None:
            return None
        return Session(user=stored.user.to_user(), token=stored.token)

    def clear(self) -> None:
        self._storage.remove_item(self.key)
