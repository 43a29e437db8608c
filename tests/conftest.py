from datetime import datetime

import pytest

from gymdesk.services.workflows import WorkflowCoordinator
from fakes import FakeSupabase, schedule_row

FIXED_NOW = datetime(2024, 6, 1, 8, 0)


@pytest.fixture
def trainers_rows():
    return [
        {"id": "t1", "first_name": "Ana", "last_name": "Lopez", "email": "ana@gym.test", "role": "trainer", "trainer_code": "AL1"},
        {"id": "t2", "first_name": "Ben", "last_name": "Okafor", "email": "ben@gym.test", "role": "trainer", "trainer_code": "BO2"},
        {"id": "t3", "first_name": "Cleo", "last_name": "Park", "email": "cleo@gym.test", "role": "trainer"},
        {"id": "m1", "first_name": "Max", "last_name": "Member", "email": "max@gym.test", "role": "member"},
    ]


@pytest.fixture
def fake_db(trainers_rows):
    return FakeSupabase(
        {
            "profiles": trainers_rows,
            "classes": [
                {"id": "c1", "name": "Yoga", "description": "Morning flow", "duration": 60, "max_members": 12},
                {"id": "c2", "name": "Boxing", "description": "", "duration": 45, "max_members": 8},
            ],
            "class_schedules": [
                schedule_row("s1", "2024-06-01", "18:00", "active", "t1", "c1"),
                schedule_row("s2", "2024-06-03", "09:00", "active", "t1", "c1"),
                schedule_row("s3", "2024-05-20", "09:00", "completed", "t1", "c1"),
                schedule_row("s4", "2024-06-02", "07:00", "cancelled", "t2", "c2", name="Boxing", duration=45),
            ],
            "trainer_days_off": [],
            "class_bookings": [],
            "class_attendance": [],
        }
    )


@pytest.fixture
def coordinator(fake_db):
    return WorkflowCoordinator(fake_db, views={}, clock=lambda: FIXED_NOW)
