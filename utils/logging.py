"""
Logging setup
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from utils.config import get_settings

console = Console(stderr=True)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Route the root logger through rich and quiet the access log."""
    level = (level or get_settings().log_level).upper()

    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_path=False,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logger
