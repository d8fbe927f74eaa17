"""Logging configuration for the client."""
from __future__ import annotations

import logging
from pathlib import Path


def setup_logging(
    level: int | str = logging.INFO,
    console: bool = True,
    log_file: str | Path | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level, as a number or a name like "DEBUG"
        console: Whether to log to stderr
        log_file: Optional file that receives the same records
    """
    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )

    # Quiet noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
