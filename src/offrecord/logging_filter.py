"""Logging filter that redacts secrets from log records."""

import logging
from typing import Optional

from offrecord.engine import SecretRedactor, get_redactor


class RedactingFilter(logging.Filter):
    """
    Rewrite each record's message through a SecretRedactor.

    Arguments are merged into the message before redaction, so secrets passed
    as %-style args are caught too. Records are never dropped.
    """

    def __init__(self, redactor: Optional[SecretRedactor] = None, name: str = "") -> None:
        super().__init__(name)
        self._redactor = redactor

    @property
    def redactor(self) -> SecretRedactor:
        # Resolved per record so configure_redactor() takes effect.
        return self._redactor or get_redactor()

    def filter(self, record: logging.LogRecord) -> bool:
        redactor = self.redactor
        record.msg = redactor.redact(record.getMessage())
        record.args = None

        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redactor.redact(record.exc_text)
            # Only the redacted exc_text may reach the formatter.
            record.exc_info = None
        return True


def install_redacting_filter(
    logger: Optional[logging.Logger] = None,
    redactor: Optional[SecretRedactor] = None,
) -> RedactingFilter:
    """
    Attach a RedactingFilter to every handler of a logger.

    Args:
        logger: Logger whose handlers get the filter. Defaults to the root logger.
        redactor: Redactor to use. Defaults to the shared redactor.

    Returns:
        The installed filter
    """
    target = logger or logging.getLogger()
    redacting_filter = RedactingFilter(redactor)
    for handler in target.handlers:
        handler.addFilter(redacting_filter)
    return redacting_filter
