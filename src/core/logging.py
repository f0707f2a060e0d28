"""
structlog setup for the explorer.

Two renderings share one processor chain:
- debug: colored console lines for local exploration
- otherwise: one JSON object per event, tracebacks as dicts

Every process start opens logs/explorer_<timestamp>.log next to the
console stream; only the newest few session files are kept.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.typing import Processor

from src.core.config import settings

SESSION_LOG_GLOB = "explorer_*.log"


def _cull_old_logs(logs_dir: Path, keep: int) -> None:
    """Remove all but the `keep` newest session files (by mtime)."""
    sessions = sorted(
        logs_dir.glob(SESSION_LOG_GLOB), key=lambda p: p.stat().st_mtime, reverse=True
    )
    for stale in sessions[max(keep, 0):]:
        try:
            os.remove(stale)
        except OSError:
            pass  # another process may hold or have removed it


def _renderers(debug: bool) -> List[Processor]:
    if debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def configure_logging(
    debug: Optional[bool] = None,
    log_sessions_to_keep: Optional[int] = None,
    logs_dir: Optional[Path] = None,
) -> Path:
    """Route structlog through stdlib logging to the console and a session file.

    Safe to call more than once; earlier root handlers are closed first.

    Args:
        debug: Console rendering and DEBUG level (default: settings.debug)
        log_sessions_to_keep: Session files retained, including the new one
            (default: settings.log_sessions_to_keep)
        logs_dir: Directory for session files (default: settings.logs_dir)

    Returns:
        Path of the session log file opened by this call
    """
    if debug is None:
        debug = settings.debug
    if log_sessions_to_keep is None:
        log_sessions_to_keep = settings.log_sessions_to_keep
    logs_dir = Path(logs_dir if logs_dir is not None else settings.logs_dir)
    level = logging.DEBUG if debug else logging.INFO

    logs_dir.mkdir(parents=True, exist_ok=True)
    _cull_old_logs(logs_dir, keep=log_sessions_to_keep - 1)
    session_file = logs_dir / f"explorer_{datetime.now():%Y%m%d_%H%M%S}.log"

    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
        *_renderers(debug),
    ]

    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    root.setLevel(level)

    plain = logging.Formatter("%(message)s")
    for handler in (logging.StreamHandler(), logging.FileHandler(session_file, mode="w")):
        handler.setFormatter(plain)
        root.addHandler(handler)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return session_file


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger for a module: `log = get_logger(__name__)`."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach request-scoped values (request_id, dataset, ...) to every event."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Forget request-scoped values once the request is done."""
    structlog.contextvars.clear_contextvars()
