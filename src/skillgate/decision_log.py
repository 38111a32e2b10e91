"""decision_log.py — Append-only record of every gate decision.

One JSON object per line. Writing is best-effort: a sink that cannot be
written is skipped silently and never changes a decision.
"""

import fcntl
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .gate_types import DecisionRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


class DecisionLog:
    """File-backed decision log.

    Each record is written as a single line with one write() call while an
    exclusive flock is held on the file, so concurrent hook processes never
    interleave partial lines.
    """

    def __init__(self, path: Union[str, Path], clock: Callable[[], str] = now_timestamp):
        self.path = Path(path)
        self.clock = clock

    def record(self, record: DecisionRecord) -> None:
        try:
            line = json.dumps(record.to_dict(), ensure_ascii=False) + "\n"
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                try:
                    f.write(line)
                    f.flush()
                finally:
                    fcntl.flock(f, fcntl.LOCK_UN)
        except (OSError, TypeError, ValueError) as e:
            logger.debug("Dropped decision record for %s: %s", record.target, e)


class NullDecisionLog:
    """Discards every record."""

    def record(self, record: DecisionRecord) -> None:
        pass


class MemoryDecisionLog:
    """Keeps records in a list. Used by tests and embedders."""

    def __init__(self, clock: Callable[[], str] = now_timestamp):
        self.clock = clock
        self.records: list[DecisionRecord] = []

    def record(self, record: DecisionRecord) -> None:
        self.records.append(record)


def read_records(path: Union[str, Path], limit: Optional[int] = None) -> list[dict]:
    """Read decision records back from a log file.

    Malformed lines (including lines written by older text-format hooks)
    are skipped. With `limit`, only the most recent records are returned.
    """
    records = []
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    raw = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(raw, dict) and isinstance(raw.get("outcome"), str):
                    records.append(raw)
    except (FileNotFoundError, PermissionError, IsADirectoryError):
        return []

    if limit is not None:
        return records[-limit:] if limit > 0 else []
    return records
