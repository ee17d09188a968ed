import json
import logging
import time
from typing import Any

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("interview_events")

# Candidate free text never reaches the log stream verbatim.
REDACTED_FIELDS = frozenset({"answer", "answer_text", "partial_text", "transcript", "resume", "resume_data"})


def _redacted(value: Any) -> dict:
    if isinstance(value, str):
        size = len(value)
    elif value is None:
        size = 0
    else:
        size = len(json.dumps(value, default=str))
    return {"redacted": True, "length": size}


def scrub(field: str, value: Any) -> Any:
    """JSON-safe copy of ``value`` with candidate text under redacted field names masked."""
    if str(field or "").lower() in REDACTED_FIELDS:
        return _redacted(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {str(key): scrub(str(key), item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [scrub("", item) for item in value]
    return str(value)


def log_event(component: str, event: str, session_id: str, level: int = logging.INFO, **fields) -> None:
    record = {
        "ts_ms": int(time.time() * 1000),
        "component": component or "interview",
        "event": event or "unknown",
        "session_id": session_id or "",
    }
    for key, value in fields.items():
        record[str(key)] = scrub(str(key), value)
    logger.log(level, json.dumps(record, ensure_ascii=False, default=str))
