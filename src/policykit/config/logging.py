"""structlog output for the ``policykit`` logger namespace.

policykit is embedded in other applications, so setup is scoped: one
stderr handler is attached to the ``policykit`` logger and records stop
propagating there. The root logger and its handlers are left as the
application configured them, and an existing structlog configuration is
kept as is.
"""

from __future__ import annotations

import logging
import sys

import structlog

LOGGER_NAME = "policykit"
HANDLER_NAME = "policykit.stderr"

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _stderr_handler(log_json: bool) -> logging.Handler:
    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_PRE_CHAIN,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> logging.Logger:
    """Route ``policykit.*`` records to stderr and return the namespace logger.

    Args:
        verbose: DEBUG level for ``policykit`` loggers instead of WARNING.
        log_json: One JSON object per line instead of console output.

    Calling again replaces the handler installed by the previous call.
    """
    if not structlog.is_configured():
        structlog.configure(
            processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )

    logger = logging.getLogger(LOGGER_NAME)
    for old in [h for h in logger.handlers if h.get_name() == HANDLER_NAME]:
        logger.removeHandler(old)
    logger.addHandler(_stderr_handler(log_json))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    return logger
