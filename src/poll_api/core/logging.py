"""Loguru logging configuration.

Human-readable stderr output for everything.  With a ``log_dir``, two file
sinks are added: ``poll-api.log`` with the full log, and ``audit.jsonl``
holding only records bound with ``audit=True`` (ballots accepted, polls
reset or deleted) serialized as JSON lines.
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"

audit_logger = logger.bind(audit=True)


def _is_audit(record: dict) -> bool:
    return bool(record["extra"].get("audit", False))


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Configure Loguru sinks.

    Args:
        log_level: Minimum log level for stderr and the main log file.
        log_dir: Optional directory for log files.  The main log rotates
            every 24 hours and is kept 7 days; the audit trail rotates at
            10 MB and is never deleted.
    """
    level = log_level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT)

    if not log_dir:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path / "poll-api.log",
        level=level,
        format=_LOG_FORMAT,
        rotation="24h",
        retention="7 days",
    )
    logger.add(
        log_path / "audit.jsonl",
        level="INFO",
        serialize=True,
        filter=_is_audit,
        rotation="10 MB",
    )
