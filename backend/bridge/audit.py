"""Append-only audit trail: one "<timestamp>: <message>" line per bridge event."""
import logging
import os
from datetime import datetime, timezone


class _AuditFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return f"{ts.isoformat(timespec='milliseconds').replace('+00:00', 'Z')}: {record.getMessage()}"


class AuditLog:
    """
    Best-effort event log handed to every handler.
    Write errors go through logging.Handler.handleError (stderr) and never reach the caller.
    """

    def __init__(self, path: str | None = None, name: str = "bridge.audit") -> None:
        # One logger per file, so two live instances never share handlers
        if path:
            name = f"{name}.{os.path.abspath(path)}"
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler: logging.Handler | None = None
        if path:
            for stale in list(self._logger.handlers):
                self._logger.removeHandler(stale)
                stale.close()
            self._handler = logging.FileHandler(path, encoding="utf-8", delay=True)
            self._handler.setFormatter(_AuditFormatter())
            self._logger.addHandler(self._handler)

    def event(self, message: str, *args: object) -> None:
        self._logger.info(message, *args)

    def close(self) -> None:
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None
