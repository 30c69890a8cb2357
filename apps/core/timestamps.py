from datetime import datetime, timezone as dt_timezone

# 9999-12-31T23:59:59.999Z, the last instant a datetime can hold
MAX_EPOCH_MS = 253402300799999

# upper bound of a 32-bit integer column
MAX_INT_COLUMN = 2147483647


def to_epoch_ms(value):
    """datetime -> epoch milliseconds (None passes through)"""
    if value is None:
        return None
    return round(value.timestamp() * 1000)


def from_epoch_ms(value):
    """epoch milliseconds -> aware UTC datetime (None and 0 become None)"""
    if not value:
        return None
    return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)
