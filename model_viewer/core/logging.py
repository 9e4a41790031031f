import logging

import structlog
from opentelemetry import trace

# Keys that may carry bearer tokens (ours or the viewer options)
SECRET_KEYS = {"access_token", "accessToken", "token", "authorization"}


def add_trace_context(logger, method_name, event_dict):
    """Injects current OTel Trace ID into the log JSON."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def mask_tokens(logger, method_name, event_dict):
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def configure_logging(json_logs: bool = False, log_level: str = "INFO"):
    """JSON lines in production, console rendering otherwise."""

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
        mask_tokens,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Uvicorn and httpx records go through the root logger at the same level
    for name in ("uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).handlers = []
    logging.getLogger("httpx").setLevel(log_level.upper())
