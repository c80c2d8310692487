# utils/time_utils.py

import datetime
from typing import Optional

import discord
import pytz


def utcnow() -> datetime.datetime:
    return discord.utils.utcnow()


def iso(dt: Optional[datetime.datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc).isoformat()


def from_iso(s: Optional[str]) -> Optional[datetime.datetime]:
    if not s:
        return None
    try:
        return datetime.datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None


def now_in(tz_name: str) -> datetime.datetime:
    """
    Current time in the named timezone, falling back to UTC for unknown names.
    """
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return datetime.datetime.now(tz)


def discord_timestamp(s: Optional[str], style: str = "f") -> str:
    """
    Render a stored ISO timestamp as a Discord <t:...> tag, or "-" if unusable.
    """
    dt = from_iso(s)
    if dt is None:
        return "-"
    return f"<t:{int(dt.timestamp())}:{style}>"
