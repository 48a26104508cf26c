from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path

import structlog
from pydantic import ValidationError

from scorekeeper.schemas import SessionSnapshot

logger = structlog.get_logger()

SNAPSHOT_VERSION = 1


class SnapshotError(ValueError):
    pass


def dump_snapshot(snapshot: SessionSnapshot) -> str:
    return json.dumps(
        {
            "version": SNAPSHOT_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "state": snapshot.model_dump(mode="json"),
        },
        ensure_ascii=False,
    )


def load_snapshot(data: str) -> SessionSnapshot:
    try:
        envelope = json.loads(data)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(envelope, dict) or "state" not in envelope:
        raise SnapshotError("Snapshot is missing its state")
    if envelope.get("version") != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {envelope.get('version')}")
    try:
        return SessionSnapshot.model_validate(envelope["state"])
    except ValidationError as exc:
        raise SnapshotError(f"Snapshot state is invalid: {exc}") from exc


class JsonFileSnapshotStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def save(self, snapshot: SessionSnapshot) -> dict:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(dump_snapshot(snapshot), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.debug("snapshot saved", path=str(self.path))
        return {"path": str(self.path)}

    def load(self) -> SessionSnapshot | None:
        if not self.path.exists():
            return None
        try:
            return load_snapshot(self.path.read_text(encoding="utf-8"))
        except SnapshotError:
            logger.error("snapshot load failed", path=str(self.path))
            raise
