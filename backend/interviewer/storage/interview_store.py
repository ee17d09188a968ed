from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from core.config import INTERVIEW_STORE_PATH, QA_MODE, USE_FILE_INTERVIEW_STORE

logger = logging.getLogger("interview_store")


class InterviewStore(Protocol):
    def save(self, record: dict[str, Any]) -> None:
        ...

    def get(self, interview_id: str) -> dict[str, Any] | None:
        ...

    def list(self, limit: int = 50) -> list[dict[str, Any]]:
        ...

    def delete(self, interview_id: str) -> bool:
        ...


def _sort_key(record: dict[str, Any]) -> str:
    return str(record.get("completed_at") or record.get("started_at") or "")


class InMemoryInterviewStore:
    def __init__(self):
        self._lock = Lock()
        self._records: dict[str, dict[str, Any]] = {}

    def save(self, record: dict[str, Any]) -> None:
        interview_id = str((record or {}).get("id") or "").strip()
        if not interview_id:
            raise ValueError("interview record requires an id")
        with self._lock:
            self._records[interview_id] = dict(record)
            self._after_write()

    def get(self, interview_id: str) -> dict[str, Any] | None:
        key = str(interview_id or "").strip()
        if not key:
            return None
        with self._lock:
            data = self._records.get(key)
            return dict(data) if isinstance(data, dict) else None

    def list(self, limit: int = 50) -> list[dict[str, Any]]:
        capped = max(1, min(int(limit or 50), 200))
        with self._lock:
            rows = [dict(item) for item in self._records.values()]
        rows.sort(key=_sort_key, reverse=True)
        return rows[:capped]

    def delete(self, interview_id: str) -> bool:
        key = str(interview_id or "").strip()
        with self._lock:
            removed = self._records.pop(key, None) is not None
            if removed:
                self._after_write()
            return removed

    def _after_write(self) -> None:
        return


class JsonFileInterviewStore(InMemoryInterviewStore):
    """Interview records in one JSON document, replaced atomically on write."""

    def __init__(self, path: Path):
        super().__init__()
        self._path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            self._records = {}
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("interview store unreadable, starting empty | path=%s err=%s", self._path, exc)
            self._records = {}
            return
        if isinstance(payload, dict):
            self._records = {
                str(key): value
                for key, value in payload.items()
                if isinstance(key, str) and isinstance(value, dict)
            }
        else:
            self._records = {}

    def _after_write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(self._records, ensure_ascii=False, default=str), encoding="utf-8")
        temp_path.replace(self._path)


def build_interview_store() -> InterviewStore:
    # QA runs never touch the interview history on disk.
    if QA_MODE or not USE_FILE_INTERVIEW_STORE:
        return InMemoryInterviewStore()
    return JsonFileInterviewStore(INTERVIEW_STORE_PATH)
