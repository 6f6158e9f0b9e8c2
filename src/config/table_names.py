from enum import Enum


class TableNames(str, Enum):
    EVENTS = "sk_events"
    REGISTRATIONS = "sk_event_registrations"
    ATTENDANCE_RECORDS = "sk_attendance_records"
    ATTENDANCE_CORRECTIONS = "sk_attendance_corrections"
