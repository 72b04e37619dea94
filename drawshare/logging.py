import logging
import re
from enum import Enum

LOG_FORMAT_DEBUG = (
    "%(asctime)s %(levelname)s:%(pathname)s:%(funcName)s:%(lineno)d: %(message)s"
)

# bearer headers, oauth form fields and JSON token fields
TOKEN_PATTERN = re.compile(
    r"(Bearer\s+|(?:access|refresh)_token[\"']?\s*[:=]\s*[\"']?)[A-Za-z0-9._\-]+"
)


class LogLevels(Enum):
    info = "INFO"
    warn = "WARN"
    error = "ERROR"
    debug = "DEBUG"


class RedactTokens(logging.Filter):
    """Mask Dropbox tokens in log records before any handler formats them."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = TOKEN_PATTERN.sub(r"\1[redacted]", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(log_level: LogLevels):
    print(f"Configuring logging with level: {log_level.value}")
    logging.basicConfig(level=log_level.value, format=LOG_FORMAT_DEBUG)

    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RedactTokens) for f in handler.filters):
            handler.addFilter(RedactTokens())

    # urllib3 logs every Dropbox request at debug
    if log_level == LogLevels.debug:
        logging.getLogger("urllib3").setLevel(logging.INFO)
