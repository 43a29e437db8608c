from datetime import date, datetime

from gymdesk.models.records import ScheduleRecord
from gymdesk.services.workflows import WorkflowCoordinator, KEY_SCHEDULE_WINDOW, new_trainer_code

FIXED_NOW = datetime(2024, 6, 1, 8, 0)


def _schedule(coordinator, schedule_id):
    return next(r for r in coordinator.schedule_window_view() if r.id == schedule_id)


def _row(fake_db, table, row_id):
    return next(r for r in fake_db.tables[table] if r["id"] == row_id)


# -----------------------------
# Delete with guard
# -----------------------------
def test_trainer_stats_come_from_one_schedule_query(coordinator, fake_db):
    trainers = coordinator.trainers_view()

    assert [t.trainer.id for t in trainers] == ["t1", "t2", "t3"]
    ana = trainers[0]
    assert ana.stats.total_count == 3
    assert ana.stats.upcoming_count == 2
    assert trainers[1].stats.total_count == 0    # only a cancelled class
    assert len(fake_db.reads("class_schedules")) == 1


def test_delete_trainer_with_classes_is_refused_without_any_request(coordinator, fake_db):
    ana = coordinator.trainers_view()[0]
    fake_db.calls.clear()

    outcome = coordinator.delete_trainer(ana)

    assert not outcome.ok
    assert outcome.kind == "info"
    assert "3" in outcome.message
    assert fake_db.mutations() == []
    assert fake_db.calls == []


def test_delete_trainer_reloads_the_list(coordinator, fake_db):
    ben = coordinator.trainers_view()[1]
    fake_db.calls.clear()

    outcome = coordinator.delete_trainer(ben)

    assert outcome.ok
    assert fake_db.mutations() == [("profiles", "delete", (("eq", "id", "t2"),), None)]
    assert [t.trainer.id for t in coordinator.trainers_view()] == ["t1", "t3"]
    assert len(fake_db.reads("profiles")) == 1


def test_delete_template_guard(coordinator, fake_db):
    yoga, boxing = sorted(coordinator.templates_view(), key=lambda t: t.template.id)

    refused = coordinator.delete_template(yoga)
    assert not refused.ok
    assert "3 scheduled classes" in refused.message

    assert coordinator.delete_template(boxing).ok
    assert [t.template.name for t in coordinator.templates_view()] == ["Yoga"]


# -----------------------------
# Cancel / status / capacity
# -----------------------------
def test_cancel_failure_keeps_the_view(coordinator, fake_db):
    before = coordinator.schedule_window_view()
    fake_db.fail.add(("class_schedules", "update"))
    fake_db.calls.clear()

    outcome = coordinator.cancel_schedule("s1")

    assert not outcome.ok
    assert outcome.kind == "error"
    assert outcome.message == "Failed to cancel class"
    assert coordinator.schedule_window_view() is before
    assert _schedule(coordinator, "s1").status == "active"
    assert fake_db.reads() == []


def test_cancel_reloads_the_window(coordinator, fake_db):
    coordinator.schedule_window_view()

    outcome = coordinator.cancel_schedule("s1")

    assert outcome.ok
    assert _row(fake_db, "class_schedules", "s1")["status"] == "cancelled"
    assert _schedule(coordinator, "s1").status == "cancelled"


def test_update_schedule_status(coordinator, fake_db):
    assert not coordinator.update_schedule_status("s1", "cancelled").ok
    assert fake_db.mutations() == []

    assert coordinator.update_schedule_status("s1", "ongoing").ok
    assert _row(fake_db, "class_schedules", "s1")["status"] == "ongoing"


def test_update_max_bookings_validation(coordinator, fake_db):
    _row(fake_db, "class_schedules", "s2")["current_bookings"] = 5
    s2 = _schedule(coordinator, "s2")

    assert coordinator.update_max_bookings(s2, "abc").message == "Max bookings must be a whole number"
    assert coordinator.update_max_bookings(s2, "0").message == "Max bookings must be a positive number"
    too_small = coordinator.update_max_bookings(s2, "3")
    assert not too_small.ok
    assert "(5)" in too_small.message
    assert fake_db.mutations() == []

    assert coordinator.update_max_bookings(s2, " 12 ").ok
    assert _row(fake_db, "class_schedules", "s2")["max_bookings"] == 12


def test_closed_classes_cannot_be_reassigned_or_resized(coordinator, fake_db):
    s3 = ScheduleRecord.from_row(_row(fake_db, "class_schedules", "s3"))    # completed
    s4 = ScheduleRecord.from_row(_row(fake_db, "class_schedules", "s4"))    # cancelled

    for closed in (s3, s4):
        refused = coordinator.reassign_schedule(closed, "t3")
        assert (refused.ok, refused.kind) == (False, "info")
        assert not coordinator.update_max_bookings(closed, "20").ok
    assert fake_db.mutations() == []


# -----------------------------
# Reassign
# -----------------------------
def test_reassignment_candidates_exclude_current_trainer(coordinator):
    s1 = _schedule(coordinator, "s1")

    outcome = coordinator.reassignment_candidates(s1)

    assert outcome.ok
    assert [t.id for t in outcome.data] == ["t2", "t3"]


def test_reassignment_candidates_failure(coordinator, fake_db):
    s1 = _schedule(coordinator, "s1")
    fake_db.fail.add(("profiles", "select"))

    outcome = coordinator.reassignment_candidates(s1)

    assert not outcome.ok
    assert outcome.data is None


def test_reassign_to_same_trainer_is_refused(coordinator, fake_db):
    s1 = _schedule(coordinator, "s1")

    assert coordinator.reassign_schedule(s1, "t1").kind == "info"
    assert not coordinator.reassign_schedule(s1, "").ok
    assert fake_db.mutations() == []


def test_reassign_moves_class_between_trainer_views(coordinator, fake_db):
    s1 = _schedule(coordinator, "s1")
    assert [r.id for r in coordinator.trainer_schedules_view("t2")] == []
    assert coordinator.trainers_view()[0].stats.total_count == 3

    outcome = coordinator.reassign_schedule(s1, "t2")

    assert outcome.ok
    assert _row(fake_db, "class_schedules", "s1")["trainer_id"] == "t2"
    assert [r.id for r in coordinator.trainer_schedules_view("t2")] == ["s1"]
    assert coordinator.trainers_view()[0].stats.total_count == 2


# -----------------------------
# Coalesced reloads
# -----------------------------
def test_mutation_reloads_each_shown_view_once(coordinator, fake_db):
    coordinator.trainers_view()
    coordinator.templates_view()
    coordinator.schedule_window_view()
    coordinator.trainer_schedules_view("t1")
    coordinator.days_off_view("t1")
    fake_db.calls.clear()

    assert coordinator.cancel_schedule("s2").ok

    assert len(fake_db.reads("profiles")) == 1
    assert len(fake_db.reads("classes")) == 1
    assert len(fake_db.reads("class_schedules")) == 4
    assert fake_db.reads("trainer_days_off") == []

    # Already fresh: reading again costs nothing
    fake_db.calls.clear()
    coordinator.trainers_view()
    coordinator.schedule_window_view()
    assert fake_db.calls == []


def test_views_never_shown_are_not_loaded(fake_db):
    coordinator = WorkflowCoordinator(fake_db, views={}, clock=lambda: FIXED_NOW)

    assert coordinator.cancel_schedule("s1").ok
    assert fake_db.reads() == []


def test_failed_refresh_keeps_old_data_and_retries(coordinator, fake_db):
    before = coordinator.schedule_window_view()
    fake_db.fail.add(("class_schedules", "select"))

    outcome = coordinator.cancel_schedule("s1")

    assert outcome.ok
    assert coordinator.views[KEY_SCHEDULE_WINDOW] is before
    assert coordinator.pop_errors() == ["Failed to refresh data"]
    assert coordinator.pop_errors() == []

    fake_db.fail.clear()
    assert _schedule(coordinator, "s1").status == "cancelled"


def test_invalidate_prefix_marks_all_trainer_views(coordinator, fake_db):
    coordinator.trainer_schedules_view("t1")
    coordinator.trainer_schedules_view("t2")
    fake_db.calls.clear()

    coordinator.invalidate_prefix("trainer_schedules_view:")
    coordinator.refresh()

    assert len(fake_db.reads("class_schedules")) == 2


# -----------------------------
# Scheduling
# -----------------------------
def test_schedule_weekly_series(coordinator, fake_db):
    outcome = coordinator.schedule_class("c2", "t3", date(2024, 6, 3), "17:30", "8", recurrence="weekly")

    assert outcome.ok
    assert outcome.message == "Scheduled 4 of 4 classes"
    inserts = [c[3] for c in fake_db.mutations("class_schedules")]
    assert [p["scheduled_date"] for p in inserts] == ["2024-06-03", "2024-06-10", "2024-06-17", "2024-06-24"]
    parent = outcome.data[0]
    assert inserts[0]["is_recurring"] is True
    assert inserts[0]["recurring_type"] == "weekly"
    assert all(p["parent_schedule_id"] == parent.id for p in inserts[1:])
    assert all(p["status"] == "active" and p["max_bookings"] == 8 for p in inserts)


def test_schedule_single_class(coordinator, fake_db):
    outcome = coordinator.schedule_class("c1", "t2", date(2024, 6, 1), "19:00", 10)

    assert outcome.ok
    (payload,) = [c[3] for c in fake_db.mutations("class_schedules")]
    assert payload["is_recurring"] is False
    assert payload["recurring_type"] is None
    assert "parent_schedule_id" not in payload


def test_schedule_class_validation(coordinator, fake_db):
    assert coordinator.schedule_class("", "t1", date(2024, 6, 3), "09:00", 10).message == "Please choose a class and a trainer"
    assert coordinator.schedule_class("c1", "t1", date(2024, 6, 3), "25:00", 10).message == "Time must be HH:MM"
    assert coordinator.schedule_class("c1", "t1", date(2024, 5, 31), "09:00", 10).message == "Cannot schedule a class in the past"
    assert coordinator.schedule_class("c1", "t1", date(2024, 6, 3), "09:00", "-2").message == "Max bookings must be a positive number"
    assert coordinator.schedule_class("c1", "t1", date(2024, 6, 3), "09:00", 10, recurrence="monthly").message == "Unknown recurrence: monthly"
    assert fake_db.mutations() == []


def test_schedule_class_remote_failure(coordinator, fake_db):
    fake_db.fail.add(("class_schedules", "insert"))

    outcome = coordinator.schedule_class("c1", "t1", date(2024, 6, 3), "09:00", 10)

    assert not outcome.ok
    assert outcome.message == "Failed to create class schedule"


# -----------------------------
# Bookings & attendance
# -----------------------------
def test_attendees_and_attendance(coordinator, fake_db):
    fake_db.tables["class_bookings"] = [
        {"id": "b1", "class_schedule_id": "s1", "member_id": "m1", "status": "confirmed", "booked_at": "2024-05-30",
         "profiles": {"first_name": "Max", "last_name": "Member", "email": "max@gym.test"}},
        {"id": "b2", "class_schedule_id": "s1", "member_id": "m2", "status": "cancelled", "booked_at": "2024-05-29"},
        {"id": "b3", "class_schedule_id": "s1", "member_id": "m3", "status": "waitlist", "booked_at": "2024-05-31",
         "profiles": {"first_name": "Wen", "last_name": "Wait", "email": "wen@gym.test"}},
    ]
    fake_db.tables["class_attendance"] = [
        {"id": "a1", "class_schedule_id": "s1", "member_id": "m1", "attended": True},
    ]

    outcome = coordinator.attendees("s1")
    bookings, attended = outcome.data
    assert [(b.member_name, b.status) for b in bookings] == [("Max Member", "confirmed"), ("Wen Wait", "waitlist")]
    assert attended == {"m1"}

    assert coordinator.set_attendance("s1", "m1", False, "t1").ok
    assert fake_db.tables["class_attendance"] == []

    assert coordinator.set_attendance("s1", "m1", True, "t1").ok
    (row,) = fake_db.tables["class_attendance"]
    assert row["attended"] is True
    assert row["checked_in_by"] == "t1"


def test_remove_booking_decrements_count(coordinator, fake_db):
    _row(fake_db, "class_schedules", "s1")["current_bookings"] = 2
    fake_db.tables["class_bookings"] = [{"id": "b1", "class_schedule_id": "s1", "member_id": "m1", "status": "confirmed"}]
    s1 = _schedule(coordinator, "s1")

    assert coordinator.remove_booking("b1", s1).ok

    assert _row(fake_db, "class_bookings", "b1")["status"] == "cancelled"
    assert _row(fake_db, "class_schedules", "s1")["current_bookings"] == 1
    assert _schedule(coordinator, "s1").current_bookings == 1


def test_remove_booking_counts_from_the_server(coordinator, fake_db):
    _row(fake_db, "class_schedules", "s1")["current_bookings"] = 2
    fake_db.tables["class_bookings"] = [{"id": "b1", "class_schedule_id": "s1", "member_id": "m1", "status": "confirmed"}]
    s1 = _schedule(coordinator, "s1")
    # Three more members book after the view was loaded
    _row(fake_db, "class_schedules", "s1")["current_bookings"] = 5

    assert coordinator.remove_booking("b1", s1).ok

    assert _row(fake_db, "class_schedules", "s1")["current_bookings"] == 4
    assert _schedule(coordinator, "s1").current_bookings == 4


def test_remove_booking_never_goes_below_zero(coordinator, fake_db):
    fake_db.tables["class_bookings"] = [{"id": "b1", "class_schedule_id": "s1", "member_id": "m1", "status": "waitlist"}]
    s1 = _schedule(coordinator, "s1")

    assert coordinator.remove_booking("b1", s1).ok

    assert _row(fake_db, "class_bookings", "b1")["status"] == "cancelled"
    assert _row(fake_db, "class_schedules", "s1")["current_bookings"] == 0
    assert fake_db.mutations("class_schedules") == []


# -----------------------------
# Templates & trainers
# -----------------------------
def test_create_template_validation(coordinator, fake_db):
    assert coordinator.create_template("  ", "", "45", "10").message == "Class name is required"
    assert coordinator.create_template("Spin", "", "0", "10").message == "Duration must be a positive number"
    assert coordinator.create_template("Spin", "", "45", "ten").message == "Max members must be a whole number"
    assert fake_db.mutations() == []


def test_create_and_update_template(coordinator, fake_db):
    coordinator.templates_view()

    assert coordinator.create_template(" Spin ", "", "45", "1,000").ok
    (payload,) = [c[3] for c in fake_db.mutations("classes")]
    assert payload == {"name": "Spin", "description": None, "duration": 45, "max_members": 1000}
    spin = next(t for t in coordinator.templates_view() if t.template.name == "Spin")

    assert coordinator.update_template(spin.template, "Spin Plus", "Hills", 50, 20).ok
    updated = _row(fake_db, "classes", spin.template.id)
    assert updated["name"] == "Spin Plus"
    assert "updated_at" in updated


def test_create_trainer(coordinator, fake_db):
    assert [t.trainer.id for t in coordinator.trainers_view()] == ["t1", "t2", "t3"]

    outcome = coordinator.create_trainer(" Dana ", "Reyes", "dana@gym.test", " 555-0101 ")

    assert outcome.ok
    (payload,) = [c[3] for c in fake_db.mutations("profiles")]
    assert payload["role"] == "trainer"
    assert (payload["first_name"], payload["phone"]) == ("Dana", "555-0101")
    code = payload["trainer_code"]
    assert len(code) == 6 and code.isdigit() and code[0] != "0"
    assert code in outcome.message
    assert [t.trainer.first_name for t in coordinator.trainers_view()] == ["Ana", "Ben", "Cleo", "Dana"]


def test_create_trainer_validation(coordinator, fake_db):
    assert coordinator.create_trainer("", "Reyes", "dana@gym.test").message == "First name is required"
    assert coordinator.create_trainer("Dana", "Reyes", "  ").message == "Email is required"
    assert fake_db.mutations() == []


def test_create_trainer_failure(coordinator, fake_db):
    fake_db.fail.add(("profiles", "insert"))

    outcome = coordinator.create_trainer("Dana", "Reyes", "dana@gym.test")

    assert not outcome.ok
    assert outcome.message == "Failed to create trainer"


def test_new_trainer_code_length():
    assert all(len(new_trainer_code(4)) == 4 for _ in range(50))


def test_update_trainer(coordinator, fake_db):
    ana = coordinator.trainers_view()[0].trainer

    assert coordinator.update_trainer(ana, "Ana", "Lopez", "").message == "Email is required"
    assert coordinator.update_trainer(ana, "Ana", "Lopez-Diaz", "ana@gym.test", " 555 ", "AL9").ok
    row = _row(fake_db, "profiles", "t1")
    assert row["last_name"] == "Lopez-Diaz"
    assert row["phone"] == "555"
    assert coordinator.trainers_view()[0].trainer.trainer_code == "AL9"


# -----------------------------
# Days off
# -----------------------------
def test_days_off_window_is_inclusive(coordinator, fake_db):
    fake_db.tables["trainer_days_off"] = [
        {"id": "d1", "trainer_id": "t1", "date": "2024-06-01", "type": "day_off"},
        {"id": "d2", "trainer_id": "t1", "date": "2024-08-30", "type": "annual_leave"},
        {"id": "d3", "trainer_id": "t1", "date": "2024-08-31", "type": "day_off"},
        {"id": "d4", "trainer_id": "t1", "date": "2024-05-31", "type": "day_off"},
        {"id": "d5", "trainer_id": "t2", "date": "2024-06-10", "type": "sick_leave"},
    ]

    assert [d.id for d in coordinator.days_off_view("t1")] == ["d1", "d2"]


def test_add_and_remove_day_off_relist(coordinator, fake_db):
    assert coordinator.days_off_view("t1") == []

    outcome = coordinator.add_day_off("t1", date(2024, 6, 10), "sick_leave")
    assert outcome.ok
    assert outcome.message == "Sick leave added for 2024-06-10"
    (day_off,) = coordinator.days_off_view("t1")
    assert (day_off.date, day_off.type) == ("2024-06-10", "sick_leave")
    assert len(fake_db.reads("trainer_days_off")) == 2

    assert coordinator.remove_day_off("t1", day_off.id).ok
    assert coordinator.days_off_view("t1") == []
    assert len(fake_db.reads("trainer_days_off")) == 3


def test_add_day_off_validation(coordinator, fake_db):
    assert not coordinator.add_day_off("t1", date(2024, 6, 10), "holiday").ok
    assert not coordinator.add_day_off("t1", date(2024, 5, 31), "day_off").ok
    assert fake_db.mutations() == []


def test_remove_day_off_failure(coordinator, fake_db):
    fake_db.fail.add(("trainer_days_off", "delete"))

    outcome = coordinator.remove_day_off("t1", "d1")

    assert not outcome.ok
    assert outcome.message == "Failed to remove day off"
