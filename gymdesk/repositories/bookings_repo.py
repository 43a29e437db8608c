# gymdesk/repositories/bookings_repo.py
from gymdesk.config import (
    BOOKINGS_TABLE,
    BOOKING_COLUMNS,
    BOOKING_CANCELLED,
    LISTED_BOOKING_STATUSES,
    ATTENDANCE_TABLE,
    ATTENDANCE_COLUMNS,
)
from gymdesk.models.records import BookingRecord, AttendanceRecord


def load_listed_bookings(client, schedule_id: str) -> list[BookingRecord]:
    """Confirmed and waitlisted bookings of one class, oldest first."""
    res = (
        client.table(BOOKINGS_TABLE)
        .select(BOOKING_COLUMNS)
        .eq("class_schedule_id", schedule_id)
        .in_("status", LISTED_BOOKING_STATUSES)
        .order("booked_at")
        .execute()
    )
    return [BookingRecord.from_row(r) for r in (res.data or [])]


def cancel_booking(client, booking_id: str) -> None:
    client.table(BOOKINGS_TABLE).update({"status": BOOKING_CANCELLED}).eq("id", booking_id).execute()


def load_attendance(client, schedule_id: str) -> list[AttendanceRecord]:
    res = (
        client.table(ATTENDANCE_TABLE)
        .select(ATTENDANCE_COLUMNS)
        .eq("class_schedule_id", schedule_id)
        .execute()
    )
    return [AttendanceRecord.from_row(r) for r in (res.data or [])]


def mark_attended(client, schedule_id: str, member_id: str, checked_in_by, checked_in_at: str) -> None:
    client.table(ATTENDANCE_TABLE).insert(
        {
            "class_schedule_id": schedule_id,
            "member_id": member_id,
            "attended": True,
            "checked_in_at": checked_in_at,
            "checked_in_by": checked_in_by,
        }
    ).execute()


def clear_attendance(client, schedule_id: str, member_id: str) -> None:
    (
        client.table(ATTENDANCE_TABLE)
        .delete()
        .eq("class_schedule_id", schedule_id)
        .eq("member_id", member_id)
        .execute()
    )


def delete_for_schedule(client, schedule_id: str) -> None:
    """Attendance and bookings of one class, children first."""
    client.table(ATTENDANCE_TABLE).delete().eq("class_schedule_id", schedule_id).execute()
    client.table(BOOKINGS_TABLE).delete().eq("class_schedule_id", schedule_id).execute()
