import logging
from datetime import date, datetime, timedelta

from gymdesk.config import STATUS_SCHEDULED, STATUS_IN_PROGRESS, STATUS_COMPLETED
from gymdesk.models.records import ScheduleRecord
from gymdesk.repositories import bookings_repo, schedules_repo
from gymdesk.services.workflows import REMOTE_ERRORS
from gymdesk.utils.dates import now_utc_iso

logger = logging.getLogger(__name__)


def plan_status_updates(schedules: list[ScheduleRecord], now: datetime) -> list[tuple[str, str]]:
    """
    (schedule_id, new_status) for classes whose status should move on:
    started but not finished -> ongoing, finished -> completed.
    Duration comes from the class template, in minutes.
    """
    out = []
    for s in schedules:
        start = s.starts_at()
        end = start + timedelta(minutes=s.duration)
        if start <= now < end:
            new_status = STATUS_IN_PROGRESS
        elif now >= end:
            new_status = STATUS_COMPLETED
        else:
            continue
        if new_status != s.status:
            out.append((s.id, new_status))
    return out


def update_class_statuses(client, now: datetime) -> dict:
    day = now.date()
    active = []
    for status in (STATUS_SCHEDULED, STATUS_IN_PROGRESS):
        active.extend(schedules_repo.load_schedules_for_day(client, day, status))
    logger.info("Found %d active or ongoing classes for %s", len(active), day.isoformat())

    summary = {STATUS_IN_PROGRESS: 0, STATUS_COMPLETED: 0}
    for schedule_id, new_status in plan_status_updates(active, now):
        schedules_repo.update_schedule(client, schedule_id, {"status": new_status, "updated_at": now_utc_iso()})
        summary[new_status] += 1
        logger.info("Updated class %s status to %s", schedule_id, new_status)
    return summary


def cleanup_old_classes(client, today: date) -> int:
    """Delete completed classes dated yesterday or earlier, with their bookings and attendance."""
    cutoff = today - timedelta(days=1)
    ids = schedules_repo.load_completed_ids_on_or_before(client, cutoff)
    logger.info("Found %d completed classes on or before %s", len(ids), cutoff.isoformat())
    if not ids:
        return 0

    for schedule_id in ids:
        try:
            bookings_repo.delete_for_schedule(client, schedule_id)
        except REMOTE_ERRORS:
            logger.warning("Could not delete related records for class %s", schedule_id, exc_info=True)
    schedules_repo.delete_completed_on_or_before(client, cutoff)
    return len(ids)
