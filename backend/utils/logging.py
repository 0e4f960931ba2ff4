"""
Structured logging for the decision tree builder.

- Configurable level (DEBUG, INFO, WARNING, ERROR) via DTB_LOG_LEVEL
- Writes to the logs/ directory (DTB_LOG_DIR to override)
- Console handler for development
- Helpers for tree mutations and evaluation runs
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

# Default: project root / logs
LOG_DIR = Path(os.getenv("DTB_LOG_DIR", str(Path(__file__).resolve().parent.parent.parent / "logs")))
LOG_LEVEL = os.getenv("DTB_LOG_LEVEL", "INFO").upper()


def configure_logging(
    level: str = LOG_LEVEL,
    log_dir: Optional[Path] = None,
    log_to_console: bool = True,
) -> None:
    """Configure root and backend loggers. Call once at app startup."""
    log_dir = Path(log_dir or LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    level_value = getattr(logging, level, logging.INFO)

    file_handler = logging.FileHandler(log_dir / "dtree.log", encoding="utf-8")
    file_handler.setLevel(level_value)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    root = logging.getLogger()
    root.setLevel(level_value)
    # Avoid duplicate handlers when reloading
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(file_handler)
    if log_to_console:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(level_value)
        console.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
        root.addHandler(console)

    logging.getLogger("backend").setLevel(level_value)


def _ts() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def log_mutation(
    logger: logging.Logger,
    action: str,
    tree_id: str,
    node_id: Optional[str],
    applied: bool,
    reason: Optional[str] = None,
    version: Optional[int] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Log a tree edit. Ignored edits are logged at INFO with their reason."""
    payload = {
        "event": "mutation",
        "action": action,
        "tree_id": tree_id,
        "node_id": node_id,
        "applied": applied,
        "reason": reason,
        "version": version,
        "ts": _ts(),
    }
    if extra:
        payload.update(extra)
    if applied:
        logger.debug("Mutation: %s", json.dumps(payload, default=str))
    else:
        logger.info("Mutation ignored: %s", json.dumps(payload, default=str))


def log_evaluation_result(
    logger: logging.Logger,
    evaluated: int,
    excluded: int,
    accuracy_percent: Optional[float],
    duration_sec: Optional[float] = None,
) -> None:
    """Log an evaluation run. WARNING when some records were excluded."""
    payload = {
        "event": "evaluation",
        "evaluated": evaluated,
        "excluded": excluded,
        "accuracy_percent": accuracy_percent,
        "duration_sec": duration_sec,
        "ts": _ts(),
    }
    level = logging.WARNING if excluded else logging.INFO
    logger.log(level, "Evaluation: %s", json.dumps(payload, default=str))
