"""Flat string -> string property store on a lazily-created SQLAlchemy engine.

Environment Variables:
    STATE_DB_URL (default: sqlite:///data/state.db)
"""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from invite_triage.config.constants import STATE_DB_URL
from invite_triage.config.exceptions import PipelineError
from invite_triage.utils.logging import get_logger

logger = get_logger(__name__)

TABLE_NAME = "kv_properties"


class KeyValueStore:
    """Persistent key/value properties shared across runs."""

    def __init__(self, url: str = STATE_DB_URL) -> None:
        self.url = url
        self._engine: Engine | None = None

    # ------------------------ Internal helpers ------------------------
    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        try:
            url = make_url(self.url)
        except Exception as exc:
            raise PipelineError(f"Invalid state store URL '{self.url}': {exc}") from exc

        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(url, pool_pre_ping=True)
        try:
            with engine.begin() as conn:
                conn.execute(
                    text(
                        f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
                        "prop_key VARCHAR(255) PRIMARY KEY, "
                        "prop_value TEXT NOT NULL)"
                    )
                )
        except SQLAlchemyError as exc:
            raise PipelineError(f"Failed initializing state store: {exc}") from exc
        logger.debug("State store ready at %s", url.render_as_string(hide_password=True))
        return engine

    @contextmanager
    def get_connection(self) -> Iterator[Connection]:
        """Context-managed connection (commit on success, rollback on exception)."""
        conn = self.engine.connect()
        try:
            yield conn
            conn.commit()
        except SQLAlchemyError as exc:
            conn.rollback()
            raise PipelineError(f"State store error: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ---------------- Property operations ----------------
    def get(self, key: str) -> Optional[str]:
        with self.get_connection() as conn:
            row = conn.execute(
                text(f"SELECT prop_value FROM {TABLE_NAME} WHERE prop_key = :key"),
                {"key": key},
            ).fetchone()
        return None if row is None else row[0]

    def set(self, key: str, value: str) -> None:
        with self.get_connection() as conn:
            result = conn.execute(
                text(f"UPDATE {TABLE_NAME} SET prop_value = :value WHERE prop_key = :key"),
                {"key": key, "value": value},
            )
            if result.rowcount == 0:
                conn.execute(
                    text(f"INSERT INTO {TABLE_NAME} (prop_key, prop_value) VALUES (:key, :value)"),
                    {"key": key, "value": value},
                )

    def delete(self, key: str) -> None:
        with self.get_connection() as conn:
            conn.execute(text(f"DELETE FROM {TABLE_NAME} WHERE prop_key = :key"), {"key": key})

    def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        """Return all keys, optionally only those starting with prefix."""
        with self.get_connection() as conn:
            rows = conn.execute(text(f"SELECT prop_key FROM {TABLE_NAME} ORDER BY prop_key")).fetchall()
        keys = [row[0] for row in rows]
        if prefix:
            keys = [k for k in keys if k.startswith(prefix)]
        return keys

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


__all__ = ["KeyValueStore", "TABLE_NAME"]
