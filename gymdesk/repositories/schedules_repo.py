# gymdesk/repositories/schedules_repo.py
import logging
from datetime import date
from typing import Iterable, Optional

from gymdesk.config import SCHEDULES_TABLE, SCHEDULE_COLUMNS, STATUS_COMPLETED
from gymdesk.models.records import ScheduleRecord

logger = logging.getLogger(__name__)


def _rows_to_records(rows) -> list[ScheduleRecord]:
    return [ScheduleRecord.from_row(r) for r in (rows or [])]


def load_schedules(
    client,
    *,
    trainer_ids: Optional[Iterable[str]] = None,
    class_ids: Optional[Iterable[str]] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    statuses: Optional[Iterable[str]] = None,
) -> list[ScheduleRecord]:
    """
    One round trip for every schedule matching the filters.
    Owner filters use in.(...) so stats for many trainers/templates need a single request.
    """
    query = client.table(SCHEDULES_TABLE).select(SCHEDULE_COLUMNS)
    if trainer_ids is not None:
        query = query.in_("trainer_id", list(trainer_ids))
    if class_ids is not None:
        query = query.in_("class_id", list(class_ids))
    if statuses is not None:
        query = query.in_("status", list(statuses))
    if start is not None:
        query = query.gte("scheduled_date", start.isoformat())
    if end is not None:
        query = query.lte("scheduled_date", end.isoformat())

    res = query.order("scheduled_date").execute()
    logger.debug("Loaded %d schedules", len(res.data or []))
    return _rows_to_records(res.data)


def load_schedules_for_day(client, day: date, status: str) -> list[ScheduleRecord]:
    res = (
        client.table(SCHEDULES_TABLE)
        .select(SCHEDULE_COLUMNS)
        .eq("scheduled_date", day.isoformat())
        .eq("status", status)
        .execute()
    )
    return _rows_to_records(res.data)


def load_current_bookings(client, schedule_id: str) -> Optional[int]:
    """Server-side booking count, None when the class no longer exists."""
    res = client.table(SCHEDULES_TABLE).select("current_bookings").eq("id", schedule_id).execute()
    if not res.data:
        return None
    return int(res.data[0].get("current_bookings") or 0)


def insert_schedule(client, payload: dict) -> ScheduleRecord:
    res = client.table(SCHEDULES_TABLE).insert(payload).execute()
    return ScheduleRecord.from_row(res.data[0])


def update_schedule(client, schedule_id: str, changes: dict) -> None:
    client.table(SCHEDULES_TABLE).update(changes).eq("id", schedule_id).execute()


def load_completed_ids_on_or_before(client, cutoff: date) -> list[str]:
    res = (
        client.table(SCHEDULES_TABLE)
        .select("id")
        .lte("scheduled_date", cutoff.isoformat())
        .eq("status", STATUS_COMPLETED)
        .execute()
    )
    return [str(r["id"]) for r in (res.data or [])]


def delete_completed_on_or_before(client, cutoff: date) -> None:
    (
        client.table(SCHEDULES_TABLE)
        .delete()
        .lte("scheduled_date", cutoff.isoformat())
        .eq("status", STATUS_COMPLETED)
        .execute()
    )
