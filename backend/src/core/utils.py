from datetime import datetime, timezone
from typing import Optional

def utcnow() -> datetime:
    """Horodatage UTC avec fuseau."""
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Rattache UTC aux datetimes naïfs relus depuis la base (SQLite ne conserve pas le fuseau)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
