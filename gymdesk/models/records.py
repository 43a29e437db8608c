from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
# -----------------------------
# Records built from PostgREST rows
# -----------------------------


def _embedded(row: dict, key: str) -> dict:
    # Embedded resources come back as a dict, or a one-item list for some joins
    value = row.get(key)
    if isinstance(value, list):
        value = value[0] if value else None
    return value or {}


def _full_name(profile: dict) -> str:
    return f"{profile.get('first_name', '')} {profile.get('last_name', '')}".strip()


@dataclass
class ScheduleRecord:
    id: str
    class_id: str
    trainer_id: str
    scheduled_date: str          # YYYY-MM-DD
    scheduled_time: str          # HH:MM or HH:MM:SS
    status: str
    class_name: str = "Unknown Class"
    duration: int = 0            # minutes, from the class template
    trainer_name: str = ""
    max_bookings: int = 0
    current_bookings: int = 0
    location: str = ""
    difficulty_level: str = ""
    parent_schedule_id: Optional[str] = None

    @staticmethod
    def from_row(row: dict) -> "ScheduleRecord":
        template = _embedded(row, "classes")
        trainer = _embedded(row, "profiles")
        return ScheduleRecord(
            id=str(row["id"]),
            class_id=str(row.get("class_id") or ""),
            trainer_id=str(row.get("trainer_id") or ""),
            scheduled_date=str(row.get("scheduled_date") or ""),
            scheduled_time=str(row.get("scheduled_time") or ""),
            status=str(row.get("status") or ""),
            class_name=template.get("name") or "Unknown Class",
            duration=int(template.get("duration") or 0),
            trainer_name=_full_name(trainer) or "Unknown Trainer",
            max_bookings=int(row.get("max_bookings") or 0),
            current_bookings=int(row.get("current_bookings") or 0),
            location=row.get("location") or "",
            difficulty_level=row.get("difficulty_level") or "",
            parent_schedule_id=row.get("parent_schedule_id"),
        )

    def starts_at(self) -> datetime:
        return datetime.strptime(f"{self.scheduled_date} {self.scheduled_time[:5]}", "%Y-%m-%d %H:%M")


@dataclass
class TrainerRecord:
    id: str
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    role: str = "trainer"
    trainer_code: str = ""

    @staticmethod
    def from_row(row: dict) -> "TrainerRecord":
        return TrainerRecord(
            id=str(row["id"]),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            email=row.get("email") or "",
            phone=row.get("phone") or "",
            role=row.get("role") or "trainer",
            trainer_code=row.get("trainer_code") or row.get("access_code") or "",
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class ClassTemplateRecord:
    id: str
    name: str
    description: str = ""
    duration: int = 0            # minutes
    max_members: int = 0
    created_at: str = ""
    updated_at: str = ""

    @staticmethod
    def from_row(row: dict) -> "ClassTemplateRecord":
        return ClassTemplateRecord(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            duration=int(row.get("duration") or 0),
            max_members=int(row.get("max_members") or 0),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )


@dataclass
class DayOffRecord:
    id: str
    trainer_id: str
    date: str                    # YYYY-MM-DD
    type: str = "day_off"

    @staticmethod
    def from_row(row: dict) -> "DayOffRecord":
        return DayOffRecord(
            id=str(row["id"]),
            trainer_id=str(row.get("trainer_id") or ""),
            date=str(row.get("date") or ""),
            type=row.get("type") or "day_off",
        )


@dataclass
class BookingRecord:
    id: str
    class_schedule_id: str
    member_id: str
    status: str
    booked_at: str = ""
    member_name: str = ""
    member_email: str = ""

    @staticmethod
    def from_row(row: dict) -> "BookingRecord":
        member = _embedded(row, "profiles")
        return BookingRecord(
            id=str(row["id"]),
            class_schedule_id=str(row.get("class_schedule_id") or ""),
            member_id=str(row.get("member_id") or ""),
            status=row.get("status") or "",
            booked_at=row.get("booked_at") or "",
            member_name=_full_name(member),
            member_email=member.get("email") or "",
        )


@dataclass
class AttendanceRecord:
    id: str
    class_schedule_id: str
    member_id: str
    attended: bool = False
    checked_in_at: str = ""
    checked_in_by: Optional[str] = None

    @staticmethod
    def from_row(row: dict) -> "AttendanceRecord":
        return AttendanceRecord(
            id=str(row["id"]),
            class_schedule_id=str(row.get("class_schedule_id") or ""),
            member_id=str(row.get("member_id") or ""),
            attended=bool(row.get("attended")),
            checked_in_at=row.get("checked_in_at") or "",
            checked_in_by=row.get("checked_in_by"),
        )


@dataclass
class ScheduleStats:
    total_count: int = 0
    upcoming_count: int = 0
    upcoming: list = field(default_factory=list)


@dataclass
class TrainerWithStats:
    trainer: TrainerRecord
    stats: ScheduleStats


@dataclass
class TemplateWithStats:
    template: ClassTemplateRecord
    stats: ScheduleStats
