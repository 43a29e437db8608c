"""
Derived views over schedule records.

Everything here is a pure function of its inputs: no client, no session state.
Dates and times are compared as ISO strings ("2024-06-01", "09:00"), which sort
the same way as the values they encode.
"""
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Iterable

import pandas as pd

from gymdesk.config import COUNTED_STATUSES, UPCOMING_STATUSES, STATUS_CANCELLED
from gymdesk.models.records import (
    ScheduleRecord,
    ScheduleStats,
    TrainerRecord,
    ClassTemplateRecord,
    TrainerWithStats,
    TemplateWithStats,
)


def _sort_key(r: ScheduleRecord) -> tuple[str, str]:
    return (r.scheduled_date, r.scheduled_time)


def schedule_stats(records: Iterable[ScheduleRecord], today: date) -> ScheduleStats:
    records = list(records)
    today_iso = today.isoformat()

    total = sum(1 for r in records if r.status in COUNTED_STATUSES)
    upcoming = sorted(
        (r for r in records if r.status in UPCOMING_STATUSES and r.scheduled_date >= today_iso),
        key=_sort_key,
    )
    return ScheduleStats(total_count=total, upcoming_count=len(upcoming), upcoming=upcoming)


def group_by_date(records: Iterable[ScheduleRecord]) -> "OrderedDict[str, list[ScheduleRecord]]":
    buckets: dict[str, list[ScheduleRecord]] = {}
    for r in records:
        buckets.setdefault(r.scheduled_date, []).append(r)

    grouped = OrderedDict()
    for d in sorted(buckets):
        grouped[d] = sorted(buckets[d], key=lambda r: r.scheduled_time)
    return grouped


def date_header_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return f"{day:%A, %B} {day.day}"


def stats_by_owner(
    owner_ids: Iterable[str], records: Iterable[ScheduleRecord], key: str, today: date
) -> dict[str, ScheduleStats]:
    """
    Partition a flat record list by `key` ("trainer_id" or "class_id") and
    compute stats per owner. Owners without records get zero stats.
    """
    by_owner: dict[str, list[ScheduleRecord]] = {oid: [] for oid in owner_ids}
    for r in records:
        oid = getattr(r, key)
        if oid in by_owner:
            by_owner[oid].append(r)
    return {oid: schedule_stats(rs, today) for oid, rs in by_owner.items()}


def _matches(query: str, *fields: str) -> bool:
    return any(query in (f or "").lower() for f in fields)


def filter_trainers(trainers: list[TrainerWithStats], query: str) -> list[TrainerWithStats]:
    q = (query or "").strip().lower()
    if not q:
        return list(trainers)
    return [
        t for t in trainers
        if _matches(q, t.trainer.first_name, t.trainer.last_name, t.trainer.email, t.trainer.trainer_code)
    ]


def filter_templates(templates: list[TemplateWithStats], query: str) -> list[TemplateWithStats]:
    q = (query or "").strip().lower()
    if not q:
        return list(templates)
    return [t for t in templates if _matches(q, t.template.name, t.template.description)]


def next_class(records: Iterable[ScheduleRecord], now: datetime):
    upcoming = [r for r in records if r.status != STATUS_CANCELLED and r.starts_at() > now]
    if not upcoming:
        return None
    return min(upcoming, key=_sort_key)


def classes_today_count(records: Iterable[ScheduleRecord], now: datetime, day_off_dates: set) -> int:
    today_iso = now.date().isoformat()
    if today_iso in day_off_dates:
        return 0
    return sum(
        1 for r in records
        if r.scheduled_date == today_iso and r.status != STATUS_CANCELLED and r.starts_at() > now
    )


# -----------------------------
# Display tables
# -----------------------------
def trainers_frame(trainers: list[TrainerWithStats]) -> pd.DataFrame:
    cols = ["name", "email", "code", "scheduled", "upcoming", "next_class"]
    rows = []
    for t in trainers:
        nxt = t.stats.upcoming[0] if t.stats.upcoming else None
        rows.append(
            {
                "name": t.trainer.full_name,
                "email": t.trainer.email,
                "code": t.trainer.trainer_code,
                "scheduled": t.stats.total_count,
                "upcoming": t.stats.upcoming_count,
                "next_class": f"{nxt.scheduled_date} {nxt.scheduled_time[:5]} {nxt.class_name}" if nxt else "",
            }
        )
    return pd.DataFrame(rows, columns=cols)


def templates_frame(templates: list[TemplateWithStats]) -> pd.DataFrame:
    cols = ["name", "description", "duration", "max_members", "scheduled", "upcoming"]
    rows = [
        {
            "name": t.template.name,
            "description": t.template.description,
            "duration": t.template.duration,
            "max_members": t.template.max_members,
            "scheduled": t.stats.total_count,
            "upcoming": t.stats.upcoming_count,
        }
        for t in templates
    ]
    return pd.DataFrame(rows, columns=cols)


def schedule_frame(records: list[ScheduleRecord]) -> pd.DataFrame:
    cols = ["scheduled_date", "scheduled_time", "class_name", "trainer_name", "status", "current_bookings", "max_bookings"]
    df = pd.DataFrame([{c: getattr(r, c) for c in cols} for r in records], columns=cols)
    if not df.empty:
        df = df.sort_values(["scheduled_date", "scheduled_time"], kind="stable").reset_index(drop=True)
    return df
