"""
Structured logging setup.

Every component logs through ``structlog.get_logger(__name__)``. This module
wires structlog once per process so that log lines go to stderr and stdout
stays reserved for tool output (JSON, XML, Markdown).
"""

import logging
import sys

import structlog


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "info", json_output: bool = False) -> None:
    """
    Configure structlog for the process.

    Args:
        level: Minimum level name (debug, info, warning, error)
        json_output: Render JSON lines instead of the console renderer
    """
    min_level = _LEVELS.get(level.lower(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
