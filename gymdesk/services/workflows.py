"""
Multi-step mutations against the remote store, and the view caches they invalidate.

Views are kept in a plain mutable mapping (st.session_state in the app). A view
is loaded on first access and reloaded only after a mutation marks it dirty:
`refresh()` at the end of each workflow reloads every dirty view once, however
many invalidations the workflow made. Mutations never patch a cached view.
"""
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, MutableMapping, Optional

import httpx
from postgrest.exceptions import APIError

from gymdesk.config import (
    COUNTED_STATUSES,
    DAY_OFF_TYPES,
    DAY_OFF_WINDOW_DAYS,
    SCHEDULE_WINDOW_DAYS,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_SCHEDULED,
    RECURRENCE_NONE,
    TRAINER_CODE_DIGITS,
    UPCOMING_STATUSES,
    DEFAULT_LOCATION,
    DEFAULT_TIMEZONE,
)
from gymdesk.models.records import (
    ScheduleRecord,
    TrainerRecord,
    ClassTemplateRecord,
    TrainerWithStats,
    TemplateWithStats,
)
from gymdesk.repositories import (
    bookings_repo,
    days_off_repo,
    schedules_repo,
    templates_repo,
    trainers_repo,
)
from gymdesk.services.recurrence import recurrence_dates
from gymdesk.services.schedule_stats import stats_by_owner
from gymdesk.utils.dates import now_in, now_utc_iso, window
from gymdesk.utils.form_parser import parse_positive_int, require_text

logger = logging.getLogger(__name__)

REMOTE_ERRORS = (APIError, httpx.HTTPError)

KEY_TRAINERS = "trainers_view"
KEY_TEMPLATES = "templates_view"
KEY_SCHEDULE_WINDOW = "schedule_window_view"
PREFIX_TRAINER_SCHEDULES = "trainer_schedules_view:"
PREFIX_DAYS_OFF = "days_off_view:"
READY_SUFFIX = "_ready"

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")
_CLOSED_CLASS = "Completed or cancelled classes cannot be changed."


@dataclass
class Outcome:
    ok: bool
    message: str
    kind: str = "success"        # success | info | error
    data: Any = None

    @staticmethod
    def refused(message: str) -> "Outcome":
        return Outcome(False, message, "info")

    @staticmethod
    def failed(message: str) -> "Outcome":
        return Outcome(False, message, "error")


def new_trainer_code(digits: int = TRAINER_CODE_DIGITS) -> str:
    # No leading zero, so the code keeps its length when typed as a number
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


class WorkflowCoordinator:
    def __init__(
        self,
        client,
        views: Optional[MutableMapping] = None,
        tz_name: str = DEFAULT_TIMEZONE,
        clock: Optional[Callable] = None,
    ) -> None:
        self.client = client
        self.views = views if views is not None else {}
        self._clock = clock or (lambda: now_in(tz_name))
        self._loaders: dict[str, Callable[[], Any]] = {}
        self.errors: list[str] = []

    def now(self):
        return self._clock()

    def today(self) -> date:
        return self.now().date()

    # -----------------------------
    # View cache plumbing
    # -----------------------------
    def _view(self, key: str, loader: Callable[[], Any], failure: str):
        self._loaders[key] = loader
        if not self.views.get(key + READY_SUFFIX):
            self._reload(key, failure)
        return self.views.get(key, [])

    def _reload(self, key: str, failure: str) -> None:
        try:
            self.views[key] = self._loaders[key]()
        except REMOTE_ERRORS:
            # Keep whatever was cached before; stays dirty so the next access retries
            logger.exception("Reload of %s failed", key)
            self.errors.append(failure)
            return
        self.views[key + READY_SUFFIX] = True

    def invalidate(self, *keys: str) -> None:
        for k in keys:
            self.views[k + READY_SUFFIX] = False

    def invalidate_prefix(self, prefix: str) -> None:
        self.invalidate(*[k for k in list(self._loaders) if k.startswith(prefix)])

    def _invalidate_schedules(self) -> None:
        # Anything derived from class_schedules
        self.invalidate(KEY_SCHEDULE_WINDOW, KEY_TRAINERS, KEY_TEMPLATES)
        self.invalidate_prefix(PREFIX_TRAINER_SCHEDULES)

    def refresh(self) -> None:
        """Reload every dirty view that has been shown, once each."""
        for key in list(self._loaders):
            if not self.views.get(key + READY_SUFFIX):
                self._reload(key, "Failed to refresh data")

    def pop_errors(self) -> list[str]:
        errors, self.errors = self.errors, []
        return errors

    def _mutate(self, action: Callable[[], Any], success: str, failure: str, invalidate: Callable[[], None]) -> Outcome:
        try:
            result = action()
        except REMOTE_ERRORS:
            logger.exception(failure)
            return Outcome.failed(failure)
        invalidate()
        self.refresh()
        return Outcome(True, success, data=result)

    # -----------------------------
    # Views
    # -----------------------------
    def trainers_view(self) -> list[TrainerWithStats]:
        return self._view(KEY_TRAINERS, self._load_trainers_with_stats, "Failed to load trainers")

    def templates_view(self) -> list[TemplateWithStats]:
        return self._view(KEY_TEMPLATES, self._load_templates_with_stats, "Failed to load class templates")

    def schedule_window_view(self) -> list[ScheduleRecord]:
        return self._view(KEY_SCHEDULE_WINDOW, self._load_schedule_window, "Failed to load scheduled classes")

    def trainer_schedules_view(self, trainer_id: str) -> list[ScheduleRecord]:
        return self._view(
            PREFIX_TRAINER_SCHEDULES + trainer_id,
            lambda: self._load_trainer_schedules(trainer_id),
            "Failed to load your classes",
        )

    def days_off_view(self, trainer_id: str) -> list:
        return self._view(
            PREFIX_DAYS_OFF + trainer_id,
            lambda: self._load_days_off(trainer_id),
            "Failed to load days off",
        )

    def _load_trainers_with_stats(self) -> list[TrainerWithStats]:
        trainers = trainers_repo.load_trainers(self.client)
        ids = [t.id for t in trainers]
        records = schedules_repo.load_schedules(self.client, trainer_ids=ids, statuses=COUNTED_STATUSES) if ids else []
        stats = stats_by_owner(ids, records, "trainer_id", self.today())
        return [TrainerWithStats(t, stats[t.id]) for t in trainers]

    def _load_templates_with_stats(self) -> list[TemplateWithStats]:
        templates = templates_repo.load_templates(self.client)
        ids = [t.id for t in templates]
        records = schedules_repo.load_schedules(self.client, class_ids=ids, statuses=COUNTED_STATUSES) if ids else []
        stats = stats_by_owner(ids, records, "class_id", self.today())
        return [TemplateWithStats(t, stats[t.id]) for t in templates]

    def _load_schedule_window(self) -> list[ScheduleRecord]:
        start, end = window(self.today(), SCHEDULE_WINDOW_DAYS)
        return schedules_repo.load_schedules(self.client, start=start, end=end)

    def _load_trainer_schedules(self, trainer_id: str) -> list[ScheduleRecord]:
        start, end = window(self.today(), SCHEDULE_WINDOW_DAYS)
        return schedules_repo.load_schedules(
            self.client,
            trainer_ids=[trainer_id],
            start=start,
            end=end,
            statuses=COUNTED_STATUSES,
        )

    def _load_days_off(self, trainer_id: str) -> list:
        start, end = window(self.today(), DAY_OFF_WINDOW_DAYS)
        rows = days_off_repo.load_days_off(self.client, trainer_id, start, end)
        return [d for d in rows if start.isoformat() <= d.date <= end.isoformat()]

    # -----------------------------
    # Delete with guard
    # -----------------------------
    def delete_trainer(self, item: TrainerWithStats) -> Outcome:
        n = item.stats.total_count
        if n > 0:
            return Outcome.refused(
                f"This trainer has {n} scheduled classes. "
                "Please reassign or cancel these classes before deleting the trainer."
            )
        return self._mutate(
            lambda: trainers_repo.delete_trainer(self.client, item.trainer.id),
            "Trainer deleted successfully",
            "Failed to delete trainer",
            lambda: self.invalidate(KEY_TRAINERS),
        )

    def delete_template(self, item: TemplateWithStats) -> Outcome:
        n = item.stats.total_count
        if n > 0:
            return Outcome.refused(
                f"This class template has {n} scheduled classes. "
                "Please delete or reassign these classes before deleting the template."
            )
        return self._mutate(
            lambda: templates_repo.delete_template(self.client, item.template.id),
            "Class template deleted successfully",
            "Failed to delete class template",
            lambda: self.invalidate(KEY_TEMPLATES),
        )

    # -----------------------------
    # Schedules
    # -----------------------------
    def cancel_schedule(self, schedule_id: str) -> Outcome:
        return self._mutate(
            lambda: schedules_repo.update_schedule(
                self.client, schedule_id, {"status": STATUS_CANCELLED, "updated_at": now_utc_iso()}
            ),
            "Class cancelled",
            "Failed to cancel class",
            self._invalidate_schedules,
        )

    def update_schedule_status(self, schedule_id: str, status: str) -> Outcome:
        if status not in (STATUS_IN_PROGRESS, STATUS_COMPLETED):
            return Outcome.failed(f"Unsupported status: {status}")
        return self._mutate(
            lambda: schedules_repo.update_schedule(
                self.client, schedule_id, {"status": status, "updated_at": now_utc_iso()}
            ),
            f"Class status updated to {status}",
            "Failed to update class status",
            self._invalidate_schedules,
        )

    def reassignment_candidates(self, schedule: ScheduleRecord) -> Outcome:
        try:
            roster = trainers_repo.load_trainers(self.client)
        except REMOTE_ERRORS:
            logger.exception("Failed to load trainers for reassignment")
            return Outcome.failed("Failed to load trainers")
        candidates = [t for t in roster if t.id != schedule.trainer_id]
        return Outcome(True, f"{len(candidates)} trainers available", data=candidates)

    def reassign_schedule(self, schedule: ScheduleRecord, new_trainer_id: str) -> Outcome:
        if schedule.status not in UPCOMING_STATUSES:
            return Outcome.refused(_CLOSED_CLASS)
        if not new_trainer_id:
            return Outcome.failed("Please choose a trainer")
        if new_trainer_id == schedule.trainer_id:
            return Outcome.refused("This class is already assigned to that trainer.")
        return self._mutate(
            lambda: schedules_repo.update_schedule(
                self.client, schedule.id, {"trainer_id": new_trainer_id, "updated_at": now_utc_iso()}
            ),
            "Class reassigned successfully",
            "Failed to reassign class",
            self._invalidate_schedules,
        )

    def update_max_bookings(self, schedule: ScheduleRecord, raw_value) -> Outcome:
        if schedule.status not in UPCOMING_STATUSES:
            return Outcome.refused(_CLOSED_CLASS)
        try:
            value = parse_positive_int(raw_value, "Max bookings")
        except ValueError as e:
            return Outcome.failed(str(e))
        if value < schedule.current_bookings:
            return Outcome.failed(
                f"Max bookings cannot be less than current bookings ({schedule.current_bookings})"
            )
        return self._mutate(
            lambda: schedules_repo.update_schedule(self.client, schedule.id, {"max_bookings": value}),
            "Max bookings updated",
            "Failed to update max bookings",
            self._invalidate_schedules,
        )

    def schedule_class(
        self,
        class_id: str,
        trainer_id: str,
        day: date,
        time_str: str,
        max_bookings,
        difficulty_level: str = "beginner",
        location: str = DEFAULT_LOCATION,
        recurrence: str = RECURRENCE_NONE,
    ) -> Outcome:
        if not class_id or not trainer_id:
            return Outcome.failed("Please choose a class and a trainer")
        if not _TIME_RE.match(time_str or ""):
            return Outcome.failed("Time must be HH:MM")
        if day < self.today():
            return Outcome.failed("Cannot schedule a class in the past")
        try:
            capacity = parse_positive_int(max_bookings, "Max bookings")
            dates = recurrence_dates(day, recurrence)
        except ValueError as e:
            return Outcome.failed(str(e))

        base = {
            "class_id": class_id,
            "trainer_id": trainer_id,
            "scheduled_time": time_str,
            "max_bookings": capacity,
            "current_bookings": 0,
            "status": STATUS_SCHEDULED,
            "difficulty_level": difficulty_level,
            "location": location,
        }
        try:
            parent = schedules_repo.insert_schedule(
                self.client,
                {
                    **base,
                    "scheduled_date": dates[0].isoformat(),
                    "is_recurring": recurrence != RECURRENCE_NONE,
                    "recurring_type": None if recurrence == RECURRENCE_NONE else recurrence,
                },
            )
        except REMOTE_ERRORS:
            logger.exception("Failed to create class schedule")
            return Outcome.failed("Failed to create class schedule")

        created = [parent]
        for d in dates[1:]:
            try:
                created.append(
                    schedules_repo.insert_schedule(
                        self.client,
                        {**base, "scheduled_date": d.isoformat(), "is_recurring": False, "parent_schedule_id": parent.id},
                    )
                )
            except REMOTE_ERRORS:
                logger.exception("Failed to create recurring instance on %s", d)

        self._invalidate_schedules()
        self.refresh()
        return Outcome(True, f"Scheduled {len(created)} of {len(dates)} classes", data=created)

    # -----------------------------
    # Bookings & attendance
    # -----------------------------
    def attendees(self, schedule_id: str) -> Outcome:
        try:
            bookings = bookings_repo.load_listed_bookings(self.client, schedule_id)
            attendance = bookings_repo.load_attendance(self.client, schedule_id)
        except REMOTE_ERRORS:
            logger.exception("Failed to load attendees for %s", schedule_id)
            return Outcome.failed("Failed to load attendees")
        attended = {a.member_id for a in attendance if a.attended}
        return Outcome(True, f"{len(bookings)} attendees", data=(bookings, attended))

    def set_attendance(self, schedule_id: str, member_id: str, attended: bool, checked_in_by: Optional[str]) -> Outcome:
        def _apply():
            if attended:
                bookings_repo.mark_attended(self.client, schedule_id, member_id, checked_in_by, now_utc_iso())
            else:
                bookings_repo.clear_attendance(self.client, schedule_id, member_id)

        return self._mutate(
            _apply,
            "Attendance updated",
            "Failed to update attendance",
            lambda: self.invalidate_prefix(PREFIX_TRAINER_SCHEDULES),
        )

    def remove_booking(self, booking_id: str, schedule: ScheduleRecord) -> Outcome:
        def _remove():
            bookings_repo.cancel_booking(self.client, booking_id)
            # Count from the server, the cached row may predate newer bookings
            current = schedules_repo.load_current_bookings(self.client, schedule.id)
            if current:
                schedules_repo.update_schedule(self.client, schedule.id, {"current_bookings": current - 1})

        return self._mutate(_remove, "User removed from class", "Failed to remove user", self._invalidate_schedules)

    # -----------------------------
    # Templates & trainers
    # -----------------------------
    def _template_payload(self, name, description, duration, max_members) -> dict:
        return {
            "name": require_text(name, "Class name"),
            "description": (description or "").strip() or None,
            "duration": parse_positive_int(duration, "Duration"),
            "max_members": parse_positive_int(max_members, "Max members"),
        }

    def create_template(self, name, description, duration, max_members) -> Outcome:
        try:
            payload = self._template_payload(name, description, duration, max_members)
        except ValueError as e:
            return Outcome.failed(str(e))
        return self._mutate(
            lambda: templates_repo.insert_template(self.client, payload),
            "Class template created successfully",
            "Failed to create class template",
            lambda: self.invalidate(KEY_TEMPLATES),
        )

    def update_template(self, template: ClassTemplateRecord, name, description, duration, max_members) -> Outcome:
        try:
            payload = self._template_payload(name, description, duration, max_members)
        except ValueError as e:
            return Outcome.failed(str(e))
        payload["updated_at"] = now_utc_iso()
        return self._mutate(
            lambda: templates_repo.update_template(self.client, template.id, payload),
            "Class template updated successfully",
            "Failed to update class template",
            lambda: self.invalidate(KEY_TEMPLATES, KEY_SCHEDULE_WINDOW),
        )

    def create_trainer(self, first_name, last_name, email, phone="") -> Outcome:
        try:
            payload = {
                "first_name": require_text(first_name, "First name"),
                "last_name": require_text(last_name, "Last name"),
                "email": require_text(email, "Email"),
                "phone": (phone or "").strip(),
                "trainer_code": new_trainer_code(),
            }
        except ValueError as e:
            return Outcome.failed(str(e))
        return self._mutate(
            lambda: trainers_repo.insert_trainer(self.client, payload),
            f"Trainer created. Access code: {payload['trainer_code']}",
            "Failed to create trainer",
            lambda: self.invalidate(KEY_TRAINERS),
        )

    def update_trainer(self, trainer: TrainerRecord, first_name, last_name, email, phone="", trainer_code="") -> Outcome:
        try:
            changes = {
                "first_name": require_text(first_name, "First name"),
                "last_name": require_text(last_name, "Last name"),
                "email": require_text(email, "Email"),
                "phone": (phone or "").strip(),
                "trainer_code": (trainer_code or "").strip(),
            }
        except ValueError as e:
            return Outcome.failed(str(e))
        return self._mutate(
            lambda: trainers_repo.update_trainer(self.client, trainer.id, changes),
            "Trainer updated successfully",
            "Failed to update trainer",
            lambda: self.invalidate(KEY_TRAINERS, KEY_SCHEDULE_WINDOW),
        )

    # -----------------------------
    # Days off
    # -----------------------------
    def add_day_off(self, trainer_id: str, day: date, kind: str) -> Outcome:
        if kind not in DAY_OFF_TYPES:
            return Outcome.failed(f"Unknown day-off type: {kind}")
        if day < self.today():
            return Outcome.failed("Day off must be today or later")
        return self._mutate(
            lambda: days_off_repo.insert_day_off(self.client, trainer_id, day, kind),
            f"{DAY_OFF_TYPES[kind]} added for {day.isoformat()}",
            "Failed to add day off",
            lambda: self.invalidate(PREFIX_DAYS_OFF + trainer_id),
        )

    def remove_day_off(self, trainer_id: str, day_off_id: str) -> Outcome:
        return self._mutate(
            lambda: days_off_repo.delete_day_off(self.client, day_off_id),
            "Day off removed",
            "Failed to remove day off",
            lambda: self.invalidate(PREFIX_DAYS_OFF + trainer_id),
        )
