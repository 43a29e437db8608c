# gymdesk/config.py

# Remote tables (PostgREST resources)
SCHEDULES_TABLE = "class_schedules"
TEMPLATES_TABLE = "classes"
PROFILES_TABLE = "profiles"
DAYS_OFF_TABLE = "trainer_days_off"
BOOKINGS_TABLE = "class_bookings"
ATTENDANCE_TABLE = "class_attendance"

# Column selections, embedded resources use PostgREST's table(cols) syntax
SCHEDULE_COLUMNS = (
    "id,class_id,trainer_id,scheduled_date,scheduled_time,status,"
    "max_bookings,current_bookings,location,difficulty_level,parent_schedule_id,"
    "classes(name,duration),profiles(first_name,last_name)"
)
TEMPLATE_COLUMNS = "id,name,description,duration,max_members,created_at,updated_at"
TRAINER_COLUMNS = "id,first_name,last_name,email,phone,role,trainer_code"
DAY_OFF_COLUMNS = "id,trainer_id,date,type"
BOOKING_COLUMNS = "id,class_schedule_id,member_id,status,booked_at,profiles(first_name,last_name,email)"
ATTENDANCE_COLUMNS = "id,class_schedule_id,member_id,attended,checked_in_at,checked_in_by"

# Schedule lifecycle, values as stored by the backend
STATUS_SCHEDULED = "active"
STATUS_IN_PROGRESS = "ongoing"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

COUNTED_STATUSES = {STATUS_SCHEDULED, STATUS_IN_PROGRESS, STATUS_COMPLETED}
UPCOMING_STATUSES = {STATUS_SCHEDULED, STATUS_IN_PROGRESS}

BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"
BOOKING_WAITLIST = "waitlist"
# Bookings listed on a class and removable by staff
LISTED_BOOKING_STATUSES = [BOOKING_CONFIRMED, BOOKING_WAITLIST]

ROLE_TRAINER = "trainer"
TRAINER_CODE_DIGITS = 6

# Day-off categories
DAY_OFF_TYPES = {
    "day_off": "Day off",
    "annual_leave": "Annual leave",
    "sick_leave": "Sick leave",
}
DEFAULT_DAY_OFF_TYPE = "day_off"

# Windows (days)
DAY_OFF_WINDOW_DAYS = 90
SCHEDULE_WINDOW_DAYS = 90
AVAILABLE_WEEKS = 3

# Recurrence
RECURRENCE_NONE = "none"
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_KINDS = [RECURRENCE_NONE, RECURRENCE_DAILY, RECURRENCE_WEEKLY]
WEEKLY_REPEATS = 3

DIFFICULTY_LEVELS = ["beginner", "intermediate", "advanced"]
DEFAULT_LOCATION = "gym"

DEFAULT_TIMEZONE = "UTC"
THEME_PREFS_FILE = ".gymdesk_prefs.json"
