"""structlog setup for store and engine logs.

Store, comparison and outreach components log snake_case events through
structlog; orchestration code (controller, pipeline, scheduler) logs through
loguru via ``bgv_system.config.logging``. Both read level and format from
settings.
"""

import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.contextvars import bound_contextvars, merge_contextvars
from structlog.processors import JSONRenderer

from bgv_system.config.settings import settings

ADDRESS_KEYS = ("to", "contact_address", "hr_email")


def mask_address(address: str) -> str:
    """Keep the first character and the domain: ``hr@acme.com`` -> ``h***@acme.com``."""
    local, sep, domain = address.partition("@")
    if not sep or not local:
        return address
    return f"{local[0]}***@{domain}"


def mask_addresses(logger: Any, method_name: str, event_dict: dict) -> dict:
    """structlog processor masking employer contact addresses."""
    for key in ADDRESS_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = mask_address(value)
    return event_dict


def configure_structured_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog processors and renderer.

    Console rendering is used only on a TTY with ``log_format=console``;
    everything else gets one JSON object per line on stderr.
    """
    level = (log_level or settings.log_level).upper()
    fmt = (log_format or settings.log_format).lower()

    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        mask_addresses,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if sys.stderr.isatty() and fmt == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(component: str, **context: Any) -> structlog.BoundLogger:
    """
    Get a structlog logger bound to a component name.

    Example:
        >>> log = get_structured_logger("VerificationStore")
        >>> log.info("check_updated", check_id="CHK_EMP_1", version=3)
    """
    return structlog.get_logger().bind(component=component, **context)


@contextmanager
def check_context(check_id: str, **context: Any) -> Iterator[None]:
    """Bind ``check_id`` (and extras) to every structlog event emitted inside the block."""
    with bound_contextvars(check_id=check_id, **context):
        yield


def get_correlation_id() -> str:
    """New id tying together the log lines of one poll or sweep run."""
    return uuid.uuid4().hex[:12]


configure_structured_logging()


__all__ = [
    "check_context",
    "configure_structured_logging",
    "get_correlation_id",
    "get_structured_logger",
    "mask_address",
    "mask_addresses",
]
