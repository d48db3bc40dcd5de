# bookverse/utils/datetime_utils.py
"""
Centralised date/time helpers used across the project.

Goals of this module:
1. Keep every timestamp timezone-aware and normalised to UTC
2. Make documents safe to write to Firestore
3. Accept the loose timestamp shapes that arrive from clients and old documents
   (datetime, ISO string, epoch milliseconds, Firestore timestamps)
"""

import logging
from datetime import datetime, date, timezone, time
from typing import Optional, Any, Union
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """Centralised date/time utility class."""

    @staticmethod
    def now() -> datetime:
        """Current time as a UTC timezone-aware datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        Parse an ISO-8601 string into a UTC datetime.

        Supported formats:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("cannot parse an empty string")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)

            # naive values are assumed to be UTC
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime parse failed: {iso_string} - {e}")
            raise ValueError(f"Invalid ISO date format: {iso_string}")

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Convert date/time values inside an object so Firestore accepts them.

        - date -> datetime (00:00:00 UTC)
        - naive datetime -> aware datetime (UTC)
        - dicts and lists are converted recursively
        """
        try:
            if isinstance(obj, date) and not isinstance(obj, datetime):
                return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)

            elif isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)

            elif isinstance(obj, dict):
                return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}

            elif isinstance(obj, list):
                return [DateTimeUtils.for_firestore(item) for item in obj]

            else:
                return obj

        except Exception as e:
            logger.error(f"Firestore conversion failed: {obj} ({type(obj)}) - {e}")
            raise ValueError(f"Cannot convert to a Firestore compatible value: {obj}")

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Normalise datetimes read back from Firestore to UTC.
        Conversion failures are logged and the original object is returned.
        """
        try:
            if isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)

            elif hasattr(obj, 'timestamp'):
                return datetime.fromtimestamp(obj.timestamp(), tz=timezone.utc)

            elif isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}

            elif isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]

            else:
                return obj

        except Exception as e:
            logger.error(f"Firestore read conversion failed: {obj} ({type(obj)}) - {e}")
            return obj

    @staticmethod
    def coerce_datetime(value: Any) -> Optional[datetime]:
        """
        Best-effort conversion of a stored timestamp into a UTC datetime.

        Accepts datetime, date, ISO strings, epoch milliseconds and Firestore
        timestamp objects. Returns None for anything else (including None).
        """
        if value is None or isinstance(value, bool):
            return None
        try:
            if isinstance(value, datetime):
                return DateTimeUtils.from_firestore(value)
            if isinstance(value, date):
                return DateTimeUtils.for_firestore(value)
            if isinstance(value, (int, float)):
                return DateTimeUtils.from_timestamp_ms(value)
            if isinstance(value, str):
                return DateTimeUtils.parse_iso_datetime(value)
            if hasattr(value, 'timestamp'):
                return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (ValueError, TypeError, OverflowError, OSError) as e:
            logger.warning(f"Ignoring unreadable timestamp {value!r}: {e}")
        return None

    @staticmethod
    def hours_between(start: datetime, end: datetime) -> float:
        """Elapsed hours from start to end (negative if start is later)."""
        return (end - start).total_seconds() / 3600.0

    @staticmethod
    def from_timestamp_ms(timestamp_ms: Union[int, float]) -> datetime:
        """Unix timestamp in milliseconds -> UTC datetime."""
        try:
            if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, (int, float)):
                raise ValueError("timestamp_ms must be a number")
            return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
        except Exception as e:
            logger.error(f"timestamp_ms conversion failed: {timestamp_ms} - {e}")
            raise ValueError(f"Invalid timestamp: {timestamp_ms}")

    @staticmethod
    def to_timestamp_ms(dt: Any) -> int:
        """datetime (or Firestore timestamp) -> Unix timestamp in milliseconds."""
        try:
            if isinstance(dt, datetime):
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                return int(dt.timestamp() * 1000)
            elif hasattr(dt, 'timestamp'):
                return int(dt.timestamp() * 1000)
            else:
                raise ValueError(f"expected a datetime or Firestore timestamp: {type(dt)}")
        except Exception as e:
            logger.error(f"timestamp_ms conversion failed: {dt} - {e}")
            raise ValueError(f"Cannot convert to timestamp: {dt}")
