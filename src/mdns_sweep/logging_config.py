"""Structured logging setup shared by the CLI and library users."""

import logging

import structlog  # type: ignore[import-not-found]

from .config import LoggingConfig


def configure_logging(logging_config: LoggingConfig) -> None:
    level = getattr(logging, logging_config.level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logging_config.file:
        handlers.append(logging.FileHandler(logging_config.file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=handlers,
        force=True
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=True) if logging_config.format.lower() == "console"
            else structlog.processors.JSONRenderer(sort_keys=True)
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.get_logger(__name__).debug("Logging configured.", level=logging_config.level, format=logging_config.format)
