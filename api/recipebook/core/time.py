"""Time helpers shared by models and audit logging."""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return the current UTC time without tzinfo.

    Recipe and category timestamps are stored in naive DateTime columns,
    so values written by the application must be naive as well to stay
    comparable with what SQLite hands back.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
