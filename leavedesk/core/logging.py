"""Logging configuration for leavedesk.

Both output modes read the same per-request fields that
RequestContextFilter puts on each record:

  request_id       which HTTP request emitted the line
  user_id          the caller, once the bearer token has been verified
  organization_id  the resolved organization, once context resolution passed

Human mode (default) prints them as a short ``[req=.. user=.. org=..]``
tag after the message, omitting the ones still unset.  JSON mode
(LOG_JSON=true) emits one object per line with the fields as top-level
keys, so a single query finds every denial issued against one tenant.

Bearer tokens and the active-organization cookie are credentials.  Only
the decoded identifiers and the internal denial reason are logged.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable

_UNSET = "-"

# record attribute -> short tag used in human output
_TAGS = (("request_id", "req"), ("user_id", "user"), ("organization_id", "org"))


def _context_tag(record: logging.LogRecord) -> str:
    parts = []
    for attr, short in _TAGS:
        value = getattr(record, attr, _UNSET)
        if value not in (None, _UNSET):
            parts.append(f"{short}={value}")
    return f"  [{' '.join(parts)}]" if parts else ""


class _ContainerFormatter(logging.Formatter):
    """One line per record: timestamp, level, logger, message, context tag.

    Records at WARNING and above also name their source line, since that
    is usually the guard clause that denied the request.
    """

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return f"{super().formatTime(record, datefmt)}.{int(record.msecs):03d}"

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        head, sep, trace = line.partition("\n")
        head += _context_tag(record)
        if record.levelno >= logging.WARNING:
            head += f"  [{record.filename}:{record.lineno}]"
        return head + sep + trace


class _JsonFormatter(logging.Formatter):
    """JSON Lines output; unset context fields are left out of the object."""

    _FIELDS = (
        "request_id",
        "user_id",
        "organization_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in self._FIELDS:
            value = getattr(record, key, None)
            if value not in (None, _UNSET):
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level_name: str,
    *,
    json_format: bool = False,
    filters: Iterable[logging.Filter] = (),
) -> None:
    """Install a single stdout handler on the root logger.

    ``filters`` go on the handler rather than the root logger so that
    records propagated up from module loggers pass through them too.
    Unknown level names fall back to INFO.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    for f in filters:
        handler.addFilter(f)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # Server and client libraries stay at WARNING even when we debug.
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
