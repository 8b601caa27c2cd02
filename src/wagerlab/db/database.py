"""Database helpers and the versioned snapshot store."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from wagerlab.config import get_settings
from wagerlab.db.models import Base, Snapshot

logger = logging.getLogger(__name__)

__all__ = ["SnapshotStore", "SnapshotSlot", "open_store", "register_migration"]

Migration = Callable[[Any], Any]

_MIGRATIONS: dict[tuple[str, int], Migration] = {}


def register_migration(name: str, from_version: int) -> Callable[[Migration], Migration]:
    """Register a function upgrading snapshot ``name`` from ``from_version`` by one."""

    def decorator(fn: Migration) -> Migration:
        _MIGRATIONS[(name, from_version)] = fn
        return fn

    return decorator


def migrate(name: str, version: int, target: int, payload: Any) -> Any | None:
    """Upgrade ``payload`` step by step; ``None`` when no path to ``target`` exists."""

    while version < target:
        step = _MIGRATIONS.get((name, version))
        if step is None:
            return None
        payload = step(payload)
        version += 1
    if version != target:
        return None
    return payload


class SnapshotStore:
    """Load/save JSON snapshots keyed by component name."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load(self, name: str, version: int) -> Any | None:
        with self.session() as session:
            row = session.get(Snapshot, name)
            if row is None:
                return None
            stored_version, payload = row.version, row.payload
        if stored_version == version:
            return payload
        migrated = migrate(name, stored_version, version, payload)
        if migrated is None:
            logger.warning(
                "Discarding %s snapshot v%s; no migration to v%s", name, stored_version, version
            )
        return migrated

    def save(self, name: str, version: int, payload: Any) -> None:
        with self.session() as session:
            row = session.get(Snapshot, name) or Snapshot(name=name)
            row.version = version
            row.payload = payload
            session.add(row)



def open_store(database_url: str | None = None) -> SnapshotStore:
    """Create the engine, ensure tables exist and return a store."""

    url = database_url or get_settings().database_url
    engine = create_engine(url, future=True, echo=False)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)
    return SnapshotStore(factory)
