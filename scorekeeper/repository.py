from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Lock
from typing import Callable, TypeVar
from uuid import UUID, uuid4

import structlog

from scorekeeper.game_state import ScoreKeeper
from scorekeeper.persistence import JsonFileSnapshotStore
from scorekeeper.schemas import SessionSnapshot

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass
class StoredSession:
    id: UUID
    created_at: datetime
    expires_at: datetime
    keeper: ScoreKeeper


class InMemorySessionRepository:
    """Scorekeeping sessions keyed by id.

    All access goes through one lock, so concurrent requests against the same
    session are applied one at a time. When ``state_dir`` is given each session
    is also written to ``<state_dir>/<id>.json`` after every change and read
    back from there if it is no longer held in memory.
    """

    def __init__(self, ttl_hours: int = 24, state_dir: str | Path | None = None) -> None:
        self._ttl_hours = ttl_hours
        self._state_dir = Path(state_dir) if state_dir else None
        self._items: dict[UUID, StoredSession] = {}
        self._lock = Lock()

    def _utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    def _prune(self) -> None:
        now = self._utcnow()
        expired = [item_id for item_id, item in self._items.items() if item.expires_at <= now]
        for item_id in expired:
            del self._items[item_id]

    def _store_for(self, item_id: UUID) -> JsonFileSnapshotStore | None:
        if self._state_dir is None:
            return None
        return JsonFileSnapshotStore(self._state_dir / f"{item_id}.json")

    def _persist(self, item: StoredSession) -> None:
        store = self._store_for(item.id)
        if store is not None:
            store.save(item.keeper.snapshot)

    def _load(self, item_id: UUID) -> StoredSession | None:
        store = self._store_for(item_id)
        snapshot = store.load() if store is not None else None
        if snapshot is None:
            return None
        now = self._utcnow()
        item = StoredSession(
            id=item_id,
            created_at=now,
            expires_at=now + timedelta(hours=self._ttl_hours),
            keeper=ScoreKeeper(snapshot),
        )
        self._items[item_id] = item
        logger.info("session restored", session_id=str(item_id))
        return item

    def _get_locked(self, item_id: UUID) -> StoredSession | None:
        self._prune()
        return self._items.get(item_id) or self._load(item_id)

    def create(self, snapshot: SessionSnapshot | None = None) -> StoredSession:
        with self._lock:
            self._prune()
            now = self._utcnow()
            item = StoredSession(
                id=uuid4(),
                created_at=now,
                expires_at=now + timedelta(hours=self._ttl_hours),
                keeper=ScoreKeeper(snapshot),
            )
            self._items[item.id] = item
            self._persist(item)
            return item

    def get(self, item_id: UUID) -> StoredSession | None:
        with self._lock:
            return self._get_locked(item_id)

    def update(self, item_id: UUID, operation: Callable[[ScoreKeeper], T]) -> tuple[StoredSession, T] | None:
        """Run ``operation`` on the session's keeper while holding the lock."""
        with self._lock:
            item = self._get_locked(item_id)
            if item is None:
                return None
            outcome = operation(item.keeper)
            item.expires_at = self._utcnow() + timedelta(hours=self._ttl_hours)
            self._persist(item)
            return item, outcome
