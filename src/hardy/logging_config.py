"""Structured logging setup for hardy's own loggers.

hardy is a library: the host application owns the root logger. This module
only ever touches the ``hardy`` logger hierarchy. It attaches one handler
rendering JSON (production) or pretty console output (development) and
leaves every other handler alone.

Enable it with ``HARDY_CONFIGURE_LOGGING=true`` and build the client with
``HardyClient.from_settings``, or call ``configure_logging`` directly.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LIBRARY_LOGGER = "hardy"


def add_library_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag all log events with the library name."""
    event_dict["lib"] = LIBRARY_LOGGER
    return event_dict


class _HardyHandler(logging.StreamHandler):
    """Marker type so reconfiguration only replaces our own handler."""


def configure_logging(log_level: str = "INFO", environment: str = "development") -> logging.Logger:
    """Route hardy's log events to a dedicated handler.

    Args:
        log_level: Level for the ``hardy`` loggers (DEBUG, INFO, WARNING, ...)
        environment: "production" renders JSON, anything else the console renderer

    Returns:
        The configured ``hardy`` stdlib logger

    structlog itself is configured only when the host has not done so already.
    Calling this again replaces the handler instead of stacking a new one.
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)
    is_production = environment.lower() == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_library_context,
    ]

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    if not structlog.is_configured():
        structlog.configure(
            processors=shared_processors
            + [
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = _HardyHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(log_level_int)

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    for existing in [h for h in library_logger.handlers if isinstance(h, _HardyHandler)]:
        library_logger.removeHandler(existing)
    library_logger.addHandler(handler)
    library_logger.setLevel(log_level_int)
    # Our handler renders hardy events; the host's root handlers would print them twice
    library_logger.propagate = False

    structlog.get_logger(__name__).debug(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
    return library_logger
