import logging
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog on top of the stdlib logging module

    Args:
        verbose (bool): log debug events of the package, warnings only otherwise
    """
    logging.basicConfig(format="%(message)s")
    logging.getLogger("brandscope").setLevel(logging.DEBUG if verbose else logging.WARNING)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@contextmanager
def logging_context(**required_context) -> Iterator[None]:
    current = structlog.contextvars.get_contextvars()
    to_bind = {k: v for k, v in required_context.items() if k not in current and v is not None}

    if to_bind:
        with structlog.contextvars.bound_contextvars(**to_bind):
            yield
    else:
        yield


def mask_headers(headers: dict[str, str]) -> dict[str, str]:
    """Replace header values with a placeholder before logging them."""
    return {key: "***" for key in headers}
