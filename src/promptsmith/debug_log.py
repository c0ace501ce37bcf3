"""In-memory debug log shared by the optimizer and the CLI.

Engine `log` calls and stdlib `logging` records land in one ring buffer,
which `--debug-log` dumps to disk after a run. Each optimizer stage logs
through its own `log.for_stage(...)` view, so an export can be read per
stage (cache, gaps, planner, select, config).
"""

from __future__ import annotations

import logging
import time
from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from promptsmith.limits import MAX_LOG_MESSAGE_LENGTH

if TYPE_CHECKING:
    from collections.abc import Iterable


class LogSource(Enum):
    """Where a log entry came from."""

    ENGINE = "ENGINE"
    LOGGING = "LOGGING"


@dataclass(slots=True)
class LogEntry:
    group: str  # Level name (DEBUG, INFO, WARNING, ERROR)
    message: str
    timestamp: float
    source: LogSource
    stage: str = ""


MAX_LOG_LINES = 2000
log_buffer: deque[LogEntry] = deque(maxlen=MAX_LOG_LINES)

_buffer_generation: int = 0


def format_message(*args: object, **kwargs: Any) -> str:
    """Join positional args, append key=value pairs, truncate oversized output."""
    output = " ".join(str(arg) for arg in args)
    if kwargs:
        key_values = " ".join(f"{key}={value!r}" for key, value in kwargs.items())
        output = f"{output} {key_values}" if output else key_values

    if len(output) > MAX_LOG_MESSAGE_LENGTH:
        output = output[:MAX_LOG_MESSAGE_LENGTH] + "... [truncated]"
    return output


class PromptsmithLogger:
    """Buffer-backed logger used by the engine, optionally bound to one stage."""

    def __init__(self, stage: str = "") -> None:
        self.stage = stage

    def for_stage(self, stage: str) -> PromptsmithLogger:
        return PromptsmithLogger(stage)

    def __call__(self, *args: object, **kwargs: Any) -> None:
        self.info(*args, **kwargs)

    def _log(self, level: str, *args: object, **kwargs: Any) -> None:
        log_buffer.append(
            LogEntry(
                group=level,
                message=format_message(*args, **kwargs),
                timestamp=time.time(),
                source=LogSource.ENGINE,
                stage=self.stage,
            )
        )

    def debug(self, *args: object, **kwargs: Any) -> None:
        self._log("DEBUG", *args, **kwargs)

    def info(self, *args: object, **kwargs: Any) -> None:
        self._log("INFO", *args, **kwargs)

    def warning(self, *args: object, **kwargs: Any) -> None:
        self._log("WARNING", *args, **kwargs)

    def error(self, *args: object, **kwargs: Any) -> None:
        self._log("ERROR", *args, **kwargs)


class DebugLogHandler(logging.Handler):
    """Logging handler that copies stdlib records into the debug buffer."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            log_buffer.append(
                LogEntry(
                    group=record.levelname,
                    message=msg,
                    timestamp=record.created,
                    source=LogSource.LOGGING,
                )
            )
        except Exception:
            self.handleError(record)


_debug_logging_initialized: bool = False


def setup_debug_logging() -> None:
    """Attach the buffer handler to the root logger.

    Idempotent: later calls are no-ops.
    """
    global _debug_logging_initialized

    if _debug_logging_initialized:
        return

    handler = DebugLogHandler()
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logging.getLogger().addHandler(handler)

    _debug_logging_initialized = True
    log.info("Debug logging initialized")


def clear_log_buffer() -> None:
    global _buffer_generation
    log_buffer.clear()
    _buffer_generation += 1


def get_buffer_generation() -> int:
    """Current buffer generation (incremented on clear)."""
    return _buffer_generation


def stage_counts(entries: Iterable[LogEntry] | None = None) -> Counter[str]:
    """Number of engine entries per stage, over the buffer unless entries is given."""
    source = log_buffer if entries is None else entries
    return Counter(entry.stage for entry in source if entry.stage)


def export_logs_to_file(file_path: str | Path) -> int:
    """Write every buffered entry to file_path.

    Args:
        file_path: Destination file; parent directories are created.

    Returns:
        Number of log entries written
    """
    output_path = Path(file_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    entries = list(log_buffer)
    stages = stage_counts(entries)
    with output_path.open("w", encoding="utf-8") as f:
        f.write("# Promptsmith Debug Log Export\n")
        f.write(f"# Total entries: {len(entries)}\n")
        f.write(f"# Buffer generation: {_buffer_generation}\n")
        if stages:
            summary = " ".join(f"{stage}={count}" for stage, count in sorted(stages.items()))
            f.write(f"# Stages: {summary}\n")
        f.write("# " + "=" * 76 + "\n\n")

        for entry in entries:
            ts = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            source = "[PY]" if entry.source is LogSource.LOGGING else "[PS]"
            if entry.stage:
                source = f"[PS:{entry.stage}]"
            f.write(f"{ts} {source} [{entry.group}] {entry.message}\n")

    return len(entries)


log = PromptsmithLogger()
