from datetime import date, timedelta

from gymdesk.config import RECURRENCE_NONE, RECURRENCE_DAILY, RECURRENCE_WEEKLY, WEEKLY_REPEATS

_SATURDAY = 5
_SUNDAY = 6


def recurrence_dates(start: date, kind: str = RECURRENCE_NONE) -> list[date]:
    """
    Dates for a recurring series, first item is the parent's date.
    daily  -> rest of the week up to Saturday, Sundays skipped
              (a Sunday start runs to the following Saturday)
    weekly -> same weekday for the next WEEKLY_REPEATS weeks
    """
    if kind == RECURRENCE_NONE:
        return [start]

    if kind == RECURRENCE_DAILY:
        days_left = 6 if start.weekday() == _SUNDAY else _SATURDAY - start.weekday()
        out = [start]
        for i in range(1, days_left + 1):
            d = start + timedelta(days=i)
            if d.weekday() == _SUNDAY:
                continue
            out.append(d)
        return out

    if kind == RECURRENCE_WEEKLY:
        return [start + timedelta(weeks=w) for w in range(WEEKLY_REPEATS + 1)]

    raise ValueError(f"Unknown recurrence: {kind}")
