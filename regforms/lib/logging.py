"""Logging utilities for regforms.

Every engine module logs through the stdlib ``logging`` tree under
``regforms.*``. ``FormLogger`` tags records with the form name and session
id; ``JSONFormatter`` lifts those tags to the top level of each JSON line so
one session can be followed through an aggregated log.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

if TYPE_CHECKING:
    from regforms.lib.settings import FormSettings

__all__ = [
    "setup_logging",
    "configure_logging",
    "JSONFormatter",
    "FormLogger",
    "get_form_logger",
    "CONTEXT_FIELDS",
]

# Record attributes JSONFormatter promotes out of "extra"
CONTEXT_FIELDS = ("form", "session_id")

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

# Marks handlers installed by setup_logging so a second call replaces only those
_HANDLER_TAG = "_regforms_handler"

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Example output:
        {"time": "2025-01-15T10:30:00.123Z", "level": "DEBUG",
         "logger": "regforms.state.form_state", "form": "team",
         "session_id": "b1f2", "message": "set_field clubName",
         "at": "form_state.py:148", "extra": {"updated": ["clubName"]}}
    """

    def __init__(
        self,
        context_fields: Iterable[str] = CONTEXT_FIELDS,
        exclude_fields: Iterable[str] = (),
    ):
        super().__init__()
        self.context_fields = tuple(context_fields)
        self.exclude_fields = frozenset(exclude_fields)

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "time": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
        }

        for name in self.context_fields:
            value = getattr(record, name, None)
            if value is not None and name not in self.exclude_fields:
                entry[name] = value

        entry["message"] = record.getMessage()
        if record.pathname:
            entry["at"] = f"{os.path.basename(record.pathname)}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
            and key not in self.context_fields
            and key not in self.exclude_fields
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


class FormLogger:
    """Logger that carries form context.

    Example:
        logger = FormLogger("regforms.state.form_state")
        logger.set_context(form="team", session_id="b1f2")
        logger.debug("blur %s", "clubName")  # record carries form/session_id
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)
        self._context: Dict[str, Any] = {}

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def set_context(self, **kwargs: Any) -> None:
        self._context.update(kwargs)

    def clear_context(self) -> None:
        self._context.clear()

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {**kwargs.pop("extra", {}), **self._context}
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)


def get_form_logger(name: str, **context: Any) -> FormLogger:
    """Form logger pre-populated with context (form, session_id, ...)."""
    form_logger = FormLogger(name)
    if context:
        form_logger.set_context(**context)
    return form_logger


def _resolve_level(level: Optional[str], verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    if level:
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, int):
            return resolved
    return logging.INFO


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
    level: Optional[str] = None,
) -> None:
    """Install regforms handlers on the root logger.

    Only handlers installed by an earlier call are replaced; handlers added
    by the host application (or a test runner) stay in place.

    Args:
        verbose: Force debug level
        json_format: One JSON object per line instead of console text
        log_file: Also write to this file
        level: Level name used when ``verbose`` is off (default INFO)
    """
    log_level = _resolve_level(level, verbose)
    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def configure_logging(
    settings: "FormSettings",
    *,
    verbose: bool = False,
    json_format: Optional[bool] = None,
    log_file: Optional[str] = None,
) -> None:
    """``setup_logging`` from settings; explicit arguments win.

    ``json_format=None`` and ``log_file=None`` mean "use the settings".
    """
    setup_logging(
        verbose=verbose,
        json_format=settings.log_format == "json" if json_format is None else json_format,
        log_file=log_file or settings.log_file,
        level=settings.log_level,
    )
