"""Log filters for PII masking and correlation ID defaults."""

import logging
import re


class PIIFilter(logging.Filter):
    """Masks PII (emails, phone numbers) in log messages."""

    EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+")
    # Tanzanian mobile numbers: +255 7XX XXX XXX or 07XX XXX XXX
    PHONE_PATTERN = re.compile(r"(?:\+?255[-.\s]?|0)[67]\d{2}[-.\s]?\d{3}[-.\s]?\d{3}")

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            msg = record.msg
            if "@" in msg:
                msg = self.EMAIL_PATTERN.sub("[EMAIL]", msg)
            if any(c.isdigit() for c in msg):
                msg = self.PHONE_PATTERN.sub("[PHONE]", msg)
            record.msg = msg
        return True


class DefaultCorrelationFilter(logging.Filter):
    """Adds default correlation_id if not present.

    Note: CorrelationFilter and ContextFilter run first and set the real
    value when one is active.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True
