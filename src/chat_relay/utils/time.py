from datetime import datetime, timezone


def get_current_datetime() -> datetime:
    """Current UTC time as a naive datetime, matching the 'timestamp' columns of the SQL schema."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
