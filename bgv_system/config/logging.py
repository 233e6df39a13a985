"""loguru configuration for orchestration logs (controller, pipeline, scheduler, CLI)."""

import sys
from typing import Any, Optional

from loguru import logger

from bgv_system.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | <level>{message}</level>"
)
DEFAULT_COMPONENT = "bgv"


def _default_component(record: dict) -> None:
    record["extra"].setdefault("component", DEFAULT_COMPONENT)


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    sink: Optional[Any] = None,
) -> None:
    """
    Configure loguru from settings.

    Behavior:
    - TTY with ``log_format=console``: colorized, human-readable lines on stderr
    - Otherwise: one JSON object per line on stdout (or on ``sink`` when given)
    - Records logged without a bound component are tagged ``bgv``
    """
    logger.remove()
    logger.configure(patcher=_default_component)

    level = (log_level or settings.log_level).upper()
    fmt = (log_format or settings.log_format).lower()

    if sink is None and sys.stderr.isatty() and fmt == "console":
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)
        return

    logger.add(
        sink if sink is not None else sys.stdout,
        format="{message}",
        level=level,
        serialize=True,
        diagnose=False,  # no variable inspection, replies carry personal data
    )


def get_logger(component: str):
    """
    Get a logger instance bound to a specific component name.

    Example:
        >>> log = get_logger("ReminderScheduler")
        >>> log.info("Reminder sweep started")
    """
    return logger.bind(component=component)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
