"""Local structured event log (opt-out with ``BIX_TELEMETRY=0``)."""

from __future__ import annotations

import json
import os
import time
from importlib import resources
from typing import Any, Iterable, Iterator

import jsonschema

from bix.settings import RuntimeSettings

_DISABLE_VALUES = {"0", "false", "no", "off"}

_EVENT_VALIDATOR = None


def telemetry_enabled() -> bool:
    value = os.getenv("BIX_TELEMETRY", "1").lower()
    return value not in _DISABLE_VALUES


def record_event(
    settings: RuntimeSettings,
    event: str,
    payload: dict[str, Any] | None = None,
    *,
    level: str = "info",
    status: str | None = None,
) -> None:
    if not telemetry_enabled():
        return
    record: dict[str, Any] = {
        "ts": time.time(),
        "event": event,
        "payload": payload or {},
        "level": level,
    }
    if status:
        record["status"] = status
    _event_validator().validate(record)
    log_path = settings.event_log
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")


def iter_events(settings: RuntimeSettings, *, prefix: str | None = None) -> Iterator[dict[str, Any]]:
    """Yield logged events, oldest first, optionally only those whose name starts with ``prefix``.

    Lines that are not valid JSON (an interrupted write) are skipped.
    """

    log_path = settings.event_log
    if not log_path.exists():
        return
    with log_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            if prefix and not str(record.get("event", "")).startswith(prefix):
                continue
            yield record


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Aggregate handler runs per handler plus the most recent error."""

    total = 0
    by_event: dict[str, int] = {}
    handlers: dict[str, dict[str, Any]] = {}
    last_error: dict[str, Any] | None = None
    for evt in events:
        total += 1
        name = evt.get("event", "unknown")
        by_event[name] = by_event.get(name, 0) + 1
        payload = evt.get("payload") or {}
        if name in ("handler.run", "handler.missing"):
            stats = handlers.setdefault(payload.get("handler", "unknown"), {"runs": 0, "failures": 0, "missing": 0})
            if name == "handler.missing":
                stats["missing"] += 1
            else:
                stats["runs"] += 1
                stats["last_exit_code"] = payload.get("exit_code")
                if evt.get("status") == "fail":
                    stats["failures"] += 1
        if evt.get("level") == "error":
            last_error = {"ts": evt.get("ts"), "event": name, "payload": payload}
    return {"total": total, "by_event": by_event, "handlers": handlers, "last_error": last_error}


def clear(settings: RuntimeSettings) -> int:
    """Delete the event log and return how many events it held."""

    removed = sum(1 for _ in iter_events(settings))
    log_path = settings.event_log
    if log_path.exists():
        log_path.unlink()
    return removed


def _event_validator() -> jsonschema.Draft202012Validator:
    global _EVENT_VALIDATOR
    if _EVENT_VALIDATOR is None:
        schema_text = resources.files("bix.resources").joinpath("events.schema.json").read_text(encoding="utf-8")
        _EVENT_VALIDATOR = jsonschema.Draft202012Validator(json.loads(schema_text))
    return _EVENT_VALIDATOR
