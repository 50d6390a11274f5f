import logging
import re
from datetime import datetime, timezone, timedelta

from constants import OAI_DATE_FORMAT, OAI_DAY_FORMAT


# Custom logging formatter to support colors
class ColoredFormatter(logging.Formatter):
    # Define color codes
    COLORS = {
        'DEBUG': '\033[94m',   # Blue
        'INFO': '\033[92m',    # Green
        'WARNING': '\033[93m', # Yellow
        'ERROR': '\033[91m',   # Red
        'CRITICAL': '\033[95m' # Magenta
    }
    RESET = '\033[0m'  # Reset color

    def format(self, record):
        # Add color to the log level name
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        return super().format(record)


# Filter to remove date from http access logs
class FilterRemoveDateFromWerkzeugLogs(logging.Filter):
    # '192.168.0.102 - - [30/Jun/2024 01:14:03] "%s" %s %s' -> '192.168.0.102 - "%s" %s %s'
    pattern: re.Pattern = re.compile(r' - - \[.+?] "')

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.pattern.sub(' - "', str(record.msg))
        return True


def now_utc():
    """Returns current datetime in UTC (aware)"""
    return datetime.now(timezone.utc)


def ensure_utc(dt):
    """
    Ensure a datetime object is aware and in UTC.
    Naive datetimes are assumed to already be UTC (that is how they are stored).
    """
    if dt is None:
        return None

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt.replace('Z', '+00:00'))
        except (ValueError, TypeError, AttributeError):
            return None

    if not hasattr(dt, 'tzinfo'):
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_db_datetime(dt):
    """Naive UTC datetime, second precision, as stored in the cache tables"""
    dt = ensure_utc(dt)
    if dt is None:
        return None
    return dt.replace(tzinfo=None, microsecond=0)


def format_oai_date(dt):
    """Format a datetime as YYYY-MM-DDThh:mm:ssZ"""
    dt = ensure_utc(dt)
    if dt is None:
        return None
    return dt.strftime(OAI_DATE_FORMAT)


def parse_oai_date(value, end_of_day=False):
    """
    Parse an OAI-PMH datestamp argument.

    Returns a tuple (datetime, granularity) where granularity is 'day' or
    'seconds', or (None, None) when the value is not a legal datestamp.
    With end_of_day, a day-granularity value is moved to 23:59:59 of that day.
    """
    if not value:
        return None, None

    for fmt, granularity in ((OAI_DATE_FORMAT, 'seconds'), (OAI_DAY_FORMAT, 'day')):
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        # strptime accepts single digit fields, the protocol does not
        if parsed.strftime(fmt) != value:
            continue
        if granularity == 'day' and end_of_day:
            parsed = parsed + timedelta(days=1, seconds=-1)
        return parsed.replace(tzinfo=timezone.utc), granularity

    return None, None


def strip_port(host):
    """'example.org:8080' -> 'example.org', IPv6 literals are kept bracketed"""
    if not host:
        return ''
    if host.startswith('['):
        end = host.find(']')
        return host[:end + 1] if end != -1 else host
    return host.split(':', 1)[0]


# Characters XML 1.0 cannot carry, not even escaped
XML_ILLEGAL_CHARS = re.compile('[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]')


def is_xml_compatible(value):
    return value is not None and XML_ILLEGAL_CHARS.search(value) is None
