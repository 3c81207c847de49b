"""Structured logging setup for siteinit.

Levels, from quietest to noisiest:
- INFO (20): one line per generation stage (default)
- VERBOSE (15): one line per HMN row or allocated subnet
- DEBUG (10): classifier decisions and free-range searches
- TRACE (5): every reservation and synthesized xname
"""

import logging
import sys
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any

import structlog

TRACE = 5
VERBOSE = 15

for _value, _name in ((TRACE, "TRACE"), (VERBOSE, "VERBOSE")):
    logging.addLevelName(_value, _name)

LOG_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Values bound by LogContext/add_context, merged into every event
_bound: ContextVar[dict[str, Any]] = ContextVar("siteinit_log_context", default={})


def _rebind(values: dict[str, Any]) -> Token:
    return _bound.set(values)


class LogContext:
    """
    Bind fields such as the generation stage or network name to every
    event logged inside a ``with`` block.

    Blocks nest; inner values shadow outer ones until the inner block exits.

    Usage:
        with LogContext(stage="river-hardware"):
            logger.info("Processing HMN rows")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Token | None = None

    def __enter__(self) -> "LogContext":
        self._token = _rebind({**_bound.get(), **self.fields})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _bound.reset(self._token)
            self._token = None


def add_context(**fields: Any) -> None:
    """Bind fields until they are cleared, outside any ``with`` block."""
    _rebind({**_bound.get(), **fields})


def clear_context(key: str) -> None:
    """Drop one bound field. Unknown keys are ignored."""
    fields = _bound.get()
    if key in fields:
        _rebind({k: v for k, v in fields.items() if k != key})


def clear_all_context() -> None:
    _rebind({})


def get_context() -> dict[str, Any]:
    """Return a copy of the bound fields."""
    return dict(_bound.get())


def _merge_bound_fields(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    for key, value in _bound.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_log_level(level: str) -> int:
    """
    Resolve a level name, case-insensitively.

    Args:
        level: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR or CRITICAL

    Returns:
        The numeric level. Unknown names fall back to INFO.
    """
    return LOG_LEVELS.get(level.upper(), logging.INFO)


def _quiet_unfiltered_loggers(log_filter: str) -> None:
    """Raise every siteinit logger whose name matches no filter term to WARNING."""
    terms = [term.strip() for term in log_filter.split(",") if term.strip()]
    siteinit_loggers = [n for n in logging.root.manager.loggerDict if "siteinit" in n]
    for name in siteinit_loggers:
        if not any(term in name for term in terms):
            logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: str | Path | None = None,
    log_filter: str | None = None,
) -> None:
    """
    Route structlog events through the standard logging module.

    Events go to stderr and, when ``log_file`` is given, to that file too
    (its directory is created). Calling this again replaces the handlers.

    Args:
        level: Root log level name
        json_logs: Render one JSON object per line instead of console output
        log_file: Optional extra destination
        log_filter: Comma-separated name fragments (e.g. "sls,networking").
            siteinit loggers matching none of them only log warnings.
    """
    numeric_level = get_log_level(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(format="%(message)s", level=numeric_level, handlers=handlers, force=True)
    logging.getLogger().setLevel(numeric_level)

    if log_filter:
        _quiet_unfiltered_loggers(log_filter)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=not log_file and sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _merge_bound_fields,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
