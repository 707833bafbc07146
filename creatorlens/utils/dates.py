"""
Calendar helpers in the creator's local timezone.
"""

from datetime import date, datetime
from typing import Optional

import pytz

from ..core.config import Config


def local_today(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> date:
    """
    Today's date in the creator's timezone.

    Args:
        now: Aware or naive (treated as UTC) instant; defaults to the current time
        tz_name: IANA zone name; defaults to CREATOR_TIMEZONE
    """
    tz = pytz.timezone(tz_name or Config.CREATOR_TIMEZONE)
    if now is None:
        now = datetime.now(pytz.utc)
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz).date()
