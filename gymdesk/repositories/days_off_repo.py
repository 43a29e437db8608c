# gymdesk/repositories/days_off_repo.py
from datetime import date

from gymdesk.config import DAYS_OFF_TABLE, DAY_OFF_COLUMNS
from gymdesk.models.records import DayOffRecord


def load_days_off(client, trainer_id: str, start: date, end: date) -> list[DayOffRecord]:
    res = (
        client.table(DAYS_OFF_TABLE)
        .select(DAY_OFF_COLUMNS)
        .eq("trainer_id", trainer_id)
        .gte("date", start.isoformat())
        .lte("date", end.isoformat())
        .order("date")
        .execute()
    )
    return [DayOffRecord.from_row(r) for r in (res.data or [])]


def insert_day_off(client, trainer_id: str, day: date, kind: str) -> None:
    client.table(DAYS_OFF_TABLE).insert(
        {"trainer_id": trainer_id, "date": day.isoformat(), "type": kind}
    ).execute()


def delete_day_off(client, day_off_id: str) -> None:
    client.table(DAYS_OFF_TABLE).delete().eq("id", day_off_id).execute()
