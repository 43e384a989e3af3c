from datetime import date, datetime, timezone
from typing import Optional


def local_day(today: Optional[date] = None) -> str:
    """Local calendar day as YYYY-MM-DD: 2026-10-19"""
    return (today or date.today()).isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a Supabase timestamp string (accepts trailing Z); naive values are UTC"""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_followers(count: int) -> str:
    """Format follower count compactly: 1500 → 1.5K, 2000000 → 2.0M"""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1000:
        return f"{count / 1000:.1f}K"
    return str(count)
