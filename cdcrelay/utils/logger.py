"""
structlog setup for the relay process

stdout is where relayed transactions go, so every log line is written to
stderr.
"""

import logging
import sys
import structlog


RENDERERS = {
    "json": structlog.processors.JSONRenderer,
    "console": structlog.dev.ConsoleRenderer,
}


def setup_logging(level: str = "INFO", format_type: str = "json") -> None:
    """
    Route structlog events through stdlib logging to stderr

    Args:
        level: Minimum level name; unknown names fall back to INFO
        format_type: ``json`` for one object per line, ``console`` for humans
    """
    renderer = RENDERERS.get(format_type, structlog.dev.ConsoleRenderer)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # replaces handlers left by an earlier call, e.g. when the CLI runs twice in one process
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True
    )


def get_logger(name: str = None) -> structlog.BoundLogger:
    """Bound logger for ``name``, or for the caller's module when omitted"""
    return structlog.get_logger(name)
