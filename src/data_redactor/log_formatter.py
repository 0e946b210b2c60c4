"""
Logging integration: a formatter that redacts records before they are written.

Usage::

    logger = logging.getLogger("app")
    logger.addHandler(logging.StreamHandler())
    install_redacting_formatter(logger)

    logger.info("User signed in", extra={"context": {"password": "hunter2"}})
    # [2024-01-01 12:00:00,000] app.INFO: User signed in {"password":"[REDACTED]","_redacted":true}
"""

from __future__ import annotations

import json
import logging

from .redactor import Redactor

#: Record attribute holding structured context (``extra={"context": {...}}``)
CONTEXT_ATTRIBUTE = "context"


class RedactingFormatter(logging.Formatter):
    """
    Format log records with the message and context passed through a Redactor.

    Output line: ``[<asctime>] <logger name>.<LEVEL>: <message> <json context>``
    """

    def __init__(
        self,
        redactor: Redactor | None = None,
        profile: str | None = None,
        datefmt: str | None = None,
    ):
        super().__init__(datefmt=datefmt)
        self.redactor = redactor if redactor is not None else Redactor()
        self.profile = profile

    def format(self, record: logging.LogRecord) -> str:
        message = self.redactor.redact(record.getMessage(), self.profile)
        if not isinstance(message, str):
            message = json.dumps(message, default=str)

        output = (
            f"[{self.formatTime(record, self.datefmt)}] "
            f"{record.name}.{record.levelname}: {message}"
        )

        context = getattr(record, CONTEXT_ATTRIBUTE, None)
        if context:
            sanitized = self.redactor.redact(context, self.profile)
            output += " " + json.dumps(sanitized, separators=(",", ":"), default=str)

        if record.exc_info:
            trace = self.redactor.redact(self.formatException(record.exc_info), self.profile)
            output += "\n" + (trace if isinstance(trace, str) else json.dumps(trace, default=str))

        return output


def install_redacting_formatter(
    logger: logging.Logger,
    redactor: Redactor | None = None,
    profile: str | None = None,
) -> RedactingFormatter:
    """
    Set a RedactingFormatter on every handler of a logger.

    Returns:
        The installed formatter (shared by all handlers)
    """
    formatter = RedactingFormatter(redactor=redactor, profile=profile)
    for handler in logger.handlers:
        handler.setFormatter(formatter)
    return formatter
