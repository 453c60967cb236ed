"""
apisurface Logging System — Structured JSON file-based logging.

Implements:
- FileLogger: Per-object-kind, per-category log files (daily rotation)
- Log entry builders for validation issues, codec failures and generator runs
- Module-level logger setup from the logging section of apisurface.yaml
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("apisurface.engine.logging")

# Valid object kinds (directory names) and their permitted categories
OBJECT_KIND_CATEGORIES = {
    "structs": ["validation", "codec", "generation"],
    "unions": ["validation", "codec", "generation"],
    "routes": ["validation", "codec", "generation"],
    "namespaces": ["validation", "generation"],
    "system": ["events", "validation", "codec", "generation"],
}

_KIND_DIRS = {
    "struct": "structs",
    "union": "unions",
    "route": "routes",
    "namespace": "namespaces",
}


def kind_dir(kind: Optional[str]) -> str:
    """Log directory of an object kind; unknown kinds log under system."""
    if kind in OBJECT_KIND_CATEGORIES:
        return kind
    return _KIND_DIRS.get(kind or "", "system")


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_kind", "category", "data")

    def __init__(self, object_kind: str, category: str, data: Dict[str, Any]):
        self.object_kind = object_kind
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-kind, per-category files.
    Files rotate daily: {log_dir}/{object_kind}/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = ".apisurface/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create the full directory tree for all object kinds and categories."""
        for obj_kind, categories in OBJECT_KIND_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_kind / cat).mkdir(parents=True, exist_ok=True)

    def _check(self, entry: LogEntry) -> None:
        categories = OBJECT_KIND_CATEGORIES.get(entry.object_kind)
        if categories is None or entry.category not in categories:
            raise ValueError(
                f"Invalid log destination {entry.object_kind}/{entry.category}"
            )

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        self._check(entry)
        file_path = self._resolve_path(entry.object_kind, entry.category)
        key = str(file_path)

        with self._file_locks[key]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def write_batch(self, entries: List[LogEntry]) -> None:
        """
        Write a batch of log entries, grouping by file path so each file is opened once.
        """
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            self._check(entry)
            file_path = str(self._resolve_path(entry.object_kind, entry.category))
            grouped[file_path].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, object_kind: str, category: str) -> Path:
        """Resolve the log file path for today's date."""
        today = date.today().isoformat()
        return self._log_dir / object_kind / category / f"{today}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        object_kind: str,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Query log entries from JSONL files for a given object_kind/category.

        Args:
            object_kind: The object kind folder (e.g. "unions", "routes").
            category: The category folder (e.g. "validation", "codec").
            start_date: Earliest date to include (defaults to 7 days ago).
            end_date: Latest date to include (defaults to today).
            filters: Only entries whose top-level keys equal ALL of these are returned.
            limit: Max number of entries to return.

        Returns:
            List of parsed log-entry dicts, newest first.
        """
        if end_date is None:
            end_date = date.today()
        if start_date is None:
            start_date = end_date - timedelta(days=7)

        log_base = self._log_dir / object_kind / category
        if not log_base.exists():
            return []

        results: List[Dict[str, Any]] = []
        current = end_date
        while current >= start_date and len(results) < limit:
            file_path = log_base / f"{current.isoformat()}.jsonl"
            if file_path.exists():
                day = self._read_jsonl(file_path, filters)
                day.reverse()
                results.extend(day[: limit - len(results)])
            current -= timedelta(days=1)

        return results[:limit]

    @staticmethod
    def _read_jsonl(path: Path, filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Read the matching entries of a .jsonl file, in file order."""
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if filters and not all(data.get(k) == v for k, v in filters.items()):
                        continue
                    entries.append(data)
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    object_ref: str,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a base log entry with common fields."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "object_ref": object_ref,
    }
    entry.update(extra)
    return entry


def log_validation_issue(
    code: str,
    object_ref: str,
    object_kind: str,
    message: str,
    severity: str = "error",
) -> LogEntry:
    """Build an entry for one issue found by the schema validator."""
    data = _base_entry(
        event="validation_issue",
        level={"error": "ERROR", "warning": "WARNING"}.get(severity, "INFO"),
        object_ref=object_ref,
        code=code,
        severity=severity,
        message=message,
    )
    return LogEntry(kind_dir(object_kind), "validation", data)


def log_validation_run(
    namespaces: List[str],
    errors: int,
    warnings: int,
    infos: int,
    duration_ms: float,
) -> LogEntry:
    """Build a summary entry for a complete validator run."""
    data = _base_entry(
        event="validation_run",
        level="ERROR" if errors else "INFO",
        object_ref="system",
        namespaces=namespaces,
        errors=errors,
        warnings=warnings,
        infos=infos,
        duration_ms=round(duration_ms, 3),
    )
    return LogEntry("system", "validation", data)


def log_codec_failure(
    object_ref: str,
    object_kind: str,
    direction: str,
    error: str,
    validation_errors: Optional[List[Dict[str, Any]]] = None,
    route_ref: Optional[str] = None,
) -> LogEntry:
    """Build an entry for a value that failed to encode or decode."""
    data = _base_entry(
        event=f"{direction}_failed",
        level="ERROR",
        object_ref=object_ref,
        direction=direction,
        error=error,
    )
    if validation_errors:
        data["validation_errors"] = validation_errors
    if route_ref:
        data["route_ref"] = route_ref
    return LogEntry(kind_dir(object_kind), "codec", data)


def log_generation(
    generator: str,
    namespace: str,
    output_path: str,
    objects: int,
    success: bool = True,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an entry for one generated output file."""
    data = _base_entry(
        event="generated" if success else "generation_failed",
        level="INFO" if success else "ERROR",
        object_ref=namespace,
        generator=generator,
        output_path=output_path,
        objects=objects,
    )
    if error:
        data["error"] = error
    return LogEntry("namespaces", "generation", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event log entry (startup, shutdown, config changes)."""
    data = _base_entry(
        event=event,
        level=level,
        object_ref="system",
    )
    if details:
        data["details"] = details
    return LogEntry("system", "events", data)


# ---------------------------------------------------------------------------
# Convenience: Global File Logger Singleton
# ---------------------------------------------------------------------------

_file_logger: Optional[FileLogger] = None


def init_logging(config: Any = None, log_dir: Optional[str] = None) -> Optional[FileLogger]:
    """
    Configure the ``apisurface`` stdlib logger and the global FileLogger.

    Args:
        config: SurfaceConfig; its ``logging`` section sets level, directory
                and whether JSONL files are written.
        log_dir: Overrides the configured directory.

    Returns:
        The FileLogger, or None when file logging is disabled.
    """
    global _file_logger

    level = "INFO"
    directory = ".apisurface/logs"
    file_logging = True
    if config is not None:
        level = config.logging.level
        directory = config.logging.directory
        file_logging = config.logging.file_logging

    root = logging.getLogger("apisurface")
    root.setLevel(getattr(logging, level, logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)

    if not file_logging:
        _file_logger = None
        return None

    _file_logger = FileLogger(log_dir=log_dir or directory)
    _file_logger.write(log_system_event("logging_initialized", details={"directory": str(_file_logger.log_dir)}))
    return _file_logger


def get_file_logger() -> Optional[FileLogger]:
    """Get the global file logger."""
    return _file_logger


def log(entry: LogEntry) -> bool:
    """Write a log entry through the global file logger."""
    if _file_logger is None:
        logger.debug("File logging not initialized — entry dropped")
        return False
    _file_logger.write(entry)
    return True


def shutdown_logging() -> None:
    """Drop the global file logger."""
    global _file_logger
    if _file_logger is not None:
        _file_logger.write(log_system_event("logging_shutdown"))
        _file_logger = None
