"""Log filters for PII masking and correlation defaults."""

import logging
import re


class PIIFilter(logging.Filter):
    """Masks rider and driver contact details (emails, phone numbers).

    Masking runs on the rendered message, so values passed as ``%s`` args
    are covered too; the record's args are consumed in the process.
    """

    EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+")
    # Lookarounds keep decimal coordinates and ids such as driver-1234567890 intact.
    PHONE_PATTERN = re.compile(r"(?<![\w.-])\+?\d{3}[-.\s]?\d{3}[-.\s]?\d{4}(?![\w.-])")

    def filter(self, record: logging.LogRecord) -> bool:
        if not isinstance(record.msg, str):
            return True
        message = record.getMessage()
        masked = message
        if "@" in masked:
            masked = self.EMAIL_PATTERN.sub("[EMAIL]", masked)
        if any(c.isdigit() for c in masked):
            masked = self.PHONE_PATTERN.sub("[PHONE]", masked)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class DefaultCorrelationFilter(logging.Filter):
    """Fills correlation_id: the trip id when known, otherwise "-"."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = getattr(record, "trip_id", "-")
        return True
