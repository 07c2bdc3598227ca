from __future__ import annotations
import logging
import sys
import structlog

def _renderer(json_lines: bool):
    if json_lines:
        # one JSON object per line; key symbols such as ⏎ stay readable
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=False)

def configure_logging(debug: bool = False, stream=None, json_lines: bool = True) -> None:
    """
    Recorder runs log JSON lines; the offline tools pass json_lines=False for
    plain console output next to their printed reports.
    """
    level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(json_lines),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=stream or sys.stderr, level=level)
