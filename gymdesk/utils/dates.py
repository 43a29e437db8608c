from datetime import date, datetime, timedelta
import pytz

def now_in(tz_name: str) -> datetime:
    """Naive wall-clock time at the gym, comparable with scheduled_date + scheduled_time."""
    return datetime.now(pytz.timezone(tz_name)).replace(tzinfo=None)

def now_utc_iso() -> str:
    return datetime.now(pytz.UTC).isoformat()

def window(start: date, days: int) -> tuple[date, date]:
    return start, start + timedelta(days=days)

def week_start(d: date) -> date:
    # Monday of d's week
    return d - timedelta(days=d.weekday())

def available_dates(today: date, weeks: int = 3) -> list[date]:
    """Current week (Monday based) plus the following weeks, from today onwards."""
    first = week_start(today)
    out = []
    for i in range(weeks * 7):
        d = first + timedelta(days=i)
        if d >= today:
            out.append(d)
    return out
