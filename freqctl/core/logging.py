"""JSONL event log for control-surface writes and sampling events."""

import json
import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterator


# Event severities, lowest first
LOG_LEVELS = {"info": 0, "warning": 1, "error": 2}


def default_log_dir() -> Path:
    """Base log directory under $HOME."""
    home = Path(os.environ.get("HOME", "/tmp"))
    return home / "var" / "log" / "freqctl"


def get_log_path(tool: str, base_path: Path | None = None, log_date: date | None = None) -> Path:
    """
    Path of one component's event log for one day.

    Args:
        tool: Logging component ("policy" or "monitor")
        base_path: Base directory (default: ~/var/log/freqctl)
        log_date: Day of the log (default: today)

    Returns:
        {base}/{date}/{tool}.jsonl
    """
    base_path = base_path or default_log_dir()
    log_date = log_date or date.today()
    return base_path / log_date.isoformat() / f"{tool}.jsonl"


class EventLogger:
    """
    Appends one JSON object per event to a component's daily log.

    Every event carries timestamp, level, tool and message plus any
    keyword fields (cpu, attribute, value, error). The file is created
    on the first event only.
    """

    def __init__(self, tool: str, log_path: Path | None = None):
        self.tool = tool
        self.log_path = log_path or get_log_path(tool)
        self._file = None

    def record(self, level: str, message: str, **fields: Any) -> None:
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        if self._file is None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.log_path, "a")

        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "tool": self.tool,
            "message": message,
        }
        event.update(fields)
        self._file.write(json.dumps(event) + "\n")
        self._file.flush()

    def info(self, message: str, **fields: Any) -> None:
        self.record("info", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.record("warning", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.record("error", message, **fields)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "EventLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _read_events(path: Path) -> Iterator[dict[str, Any]]:
    """Yield decodable events from a log file, skipping damaged lines."""
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def query_logs(
    base_path: Path,
    tool: str,
    log_date: date | None = None,
    min_level: str = "info",
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """
    Read back one day of a component's events.

    Args:
        base_path: Base log directory
        tool: Logging component
        log_date: Day to read (default: today)
        min_level: Lowest level to include
        limit: Maximum number of events, oldest first

    Returns:
        Matching events in the order they were written
    """
    path = get_log_path(tool, base_path, log_date)
    if not path.exists():
        return []

    threshold = LOG_LEVELS.get(min_level, 0)
    events = []
    for event in _read_events(path):
        if LOG_LEVELS.get(event.get("level"), 0) < threshold:
            continue
        events.append(event)
        if limit and len(events) >= limit:
            break
    return events
