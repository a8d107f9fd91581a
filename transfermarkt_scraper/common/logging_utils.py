"""Central logging utilities for the Transfermarkt scraper.

- One place to configure logging for the CLI and library use.
- Structured JSON output (LOG_FORMAT=json) or colored console output (default).
- Environment variables win over `Settings`:
    LOG_LEVEL=INFO|DEBUG|...      (default: settings.log_level)
    LOG_FORMAT=console|json       (default: settings.log_format)
    LOG_NO_COLOR=1                disables colors on console output
    LOG_TIMEZONE=utc|local        (default: local)
- Scrapers log per-field problems through `scrape_logger(name, url)`, which tags every
  record with the page URL (rendered in the message on console, as a field in JSON).

Calling configure_logging() multiple times is safe – subsequent calls are no-ops unless
`force=True` is passed.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_CONFIG_LOCK = threading.Lock()
_ALREADY_CONFIGURED = False
_SERVICE: Optional[str] = None

_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _timestamp(record: logging.LogRecord, tz_local: bool) -> datetime:
    ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return ts.astimezone() if tz_local else ts


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS and not k.startswith("_")}


class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[38;5;245m",
        "INFO": "\x1b[38;5;39m",
        "WARNING": "\x1b[38;5;214m",
        "ERROR": "\x1b[38;5;196m",
        "CRITICAL": "\x1b[48;5;196m\x1b[38;5;231m",
    }
    RESET = "\x1b[0m"

    def __init__(self, tz_local: bool, color: bool = True):
        super().__init__()
        self.tz_local = tz_local
        self.color = color

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts_str = _timestamp(record, self.tz_local).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{ts_str} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        url = getattr(record, "url", None)
        if url:
            line += f" | url={url}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname, "") if self.color else ""
        return f"{color}{line}{self.RESET}" if color else line


class JsonFormatter(logging.Formatter):
    def __init__(self, tz_local: bool):
        super().__init__()
        self.tz_local = tz_local

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": _timestamp(record, self.tz_local).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in _extras(record).items():
            try:
                json.dumps(v)
                payload[k] = v
            except (TypeError, ValueError):
                payload[k] = repr(v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(service: str | None = None, *, force: bool = False) -> None:
    """Configure root logging once.

    Parameters
    ----------
    service: Optional logical service name, attached as `service` field to every record.
    force: If True, reconfigure even if already configured.
    """
    global _ALREADY_CONFIGURED, _SERVICE
    from ..core.config import settings

    with _CONFIG_LOCK:
        if _ALREADY_CONFIGURED and not force:
            return

        log_level = os.getenv("LOG_LEVEL", settings.log_level).upper()
        log_format = os.getenv("LOG_FORMAT", settings.log_format).lower()
        tz_local = os.getenv("LOG_TIMEZONE", "local").lower() != "utc"
        no_color = os.getenv("LOG_NO_COLOR") == "1"

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)

        if log_format == "json":
            formatter: logging.Formatter = JsonFormatter(tz_local=tz_local)
        else:
            formatter = ColorFormatter(tz_local=tz_local, color=sys.stderr.isatty() and not no_color)

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(getattr(logging, log_level, logging.INFO))
        # Playwright/asyncio debug output is noise for scrape runs
        logging.getLogger("asyncio").setLevel(logging.WARNING)

        _SERVICE = service
        _ALREADY_CONFIGURED = True


class _ContextAdapter(logging.LoggerAdapter):
    """Merges static context (service, url, ...) into `extra` of every record."""

    def process(self, msg: Any, kwargs: Dict[str, Any]):  # noqa: D401
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def scrape_logger(name: str, url: str | None = None) -> logging.LoggerAdapter:
    """Logger tagged with the page currently scraped."""
    context: Dict[str, Any] = {"url": url}
    if _SERVICE:
        context["service"] = _SERVICE
    return _ContextAdapter(logging.getLogger(name), context)


__all__ = [
    "configure_logging",
    "scrape_logger",
]
