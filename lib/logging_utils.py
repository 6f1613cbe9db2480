"""Logging helpers for setup runs and the deploy tool.

Every tool logs to its own rotating file under /var/log/site_provision/ in a
single line format, so a host's provisioning and deploy history can be read
back after the terminal is gone. When the directory cannot be written (a
dry-run as an ordinary user, a read-only container) records go to stderr.
"""

from __future__ import annotations

import subprocess
import sys
from logging import Formatter, Handler, Logger, StreamHandler, getLogger, INFO, WARNING
from logging.handlers import RotatingFileHandler, SysLogHandler
from pathlib import Path

from lib.types import BYTES_PER_MB

DEFAULT_LOG_DIR = "/var/log/site_provision"
DEFAULT_LOG_LEVEL = INFO
DEFAULT_LOG_MAX_BYTES = 5 * BYTES_PER_MB
DEFAULT_LOG_BACKUP_COUNT = 5

STANDARD_LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"
STANDARD_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_standard_formatter() -> Formatter:
    return Formatter(STANDARD_LOG_FORMAT, STANDARD_DATE_FORMAT)


def _attach(logger: Logger, handler: Handler, level: int, formatter: Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _ensure_fallback_handler(logger: Logger, level: int = INFO) -> None:
    if not logger.handlers:
        _attach(logger, StreamHandler(sys.stderr), level, get_standard_formatter())


def _has_file_handler(logger: Logger, path: str) -> bool:
    return any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == path
        for h in logger.handlers
    )


def get_rotating_logger(
    name: str,
    log_file: str,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
    level: int = DEFAULT_LOG_LEVEL
) -> Logger:
    """Return the named logger writing to a rotating log_file.

    Calling it again with the same file does not add a second handler. If the
    file or its directory cannot be created the logger writes to stderr.
    """
    logger = getLogger(name)
    if not logger.handlers:
        logger.setLevel(level)
        logger.propagate = False

    path = Path(log_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        resolved = str(path.resolve())
        if not _has_file_handler(logger, resolved):
            handler = RotatingFileHandler(resolved, maxBytes=max_bytes, backupCount=backup_count)
            _attach(logger, handler, level, get_standard_formatter())
    except OSError as e:
        print(f"Cannot log to {log_file}: {e}", file=sys.stderr)
        _ensure_fallback_handler(logger, level)

    return logger


def get_service_logger(
    service_name: str,
    level: int = DEFAULT_LOG_LEVEL,
    use_syslog: bool = False,
    console_output: bool = True
) -> Logger:
    """Logger for one tool, writing DEFAULT_LOG_DIR/<service_name>.log.

    console_output mirrors bare messages to stdout; use_syslog also sends
    them to /dev/log tagged with the service name.
    """
    logger = get_rotating_logger(service_name, str(Path(DEFAULT_LOG_DIR) / f"{service_name}.log"), level=level)

    if console_output and not any(getattr(h, 'stream', None) is sys.stdout for h in logger.handlers):
        _attach(logger, StreamHandler(sys.stdout), level, Formatter('%(message)s'))

    if use_syslog and not any(isinstance(h, SysLogHandler) for h in logger.handlers):
        try:
            syslog_handler = SysLogHandler(address='/dev/log')
        except OSError:
            # No syslog socket inside minimal containers
            pass
        else:
            _attach(logger, syslog_handler, level, Formatter(f'{service_name}: %(message)s'))

    return logger


def log_subprocess_result(
    logger: Logger,
    action: str,
    result: subprocess.CompletedProcess[str],
    success_level: int = INFO,
    failure_level: int = WARNING
) -> bool:
    """Log one line for a finished command and return whether it succeeded.

    Failures carry the first three stderr lines joined with " | ".
    """
    if result.returncode == 0:
        logger.log(success_level, f"✓ {action}")
        return True

    stderr = result.stderr or ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode(errors="replace")
    lines = stderr.strip().splitlines()
    if not lines:
        details = f"exit code {result.returncode}"
    else:
        details = " | ".join(lines[:3]) + (" | ..." if len(lines) > 3 else "")
    logger.log(failure_level, f"⚠ {action} failed: {details}")
    return False
