EVENTS_URL = "/api/v1/events"
PUBLIC_EVENTS_URL = "/api/v1/events/public"
EVENT_URL = "/api/v1/events/{event_id}"
PUBLISH_EVENT_URL = "/api/v1/events/{event_id}/publish"
CANCEL_EVENT_URL = "/api/v1/events/{event_id}/cancel"
COMPLETE_EVENT_URL = "/api/v1/events/{event_id}/complete"

EVENT_REGISTRATIONS_URL = "/api/v1/events/{event_id}/registrations"
MY_REGISTRATIONS_URL = "/api/v1/registrations/mine"
CANCEL_REGISTRATION_URL = "/api/v1/registrations/{registration_id}/cancel"
APPROVE_REGISTRATION_URL = "/api/v1/registrations/{registration_id}/approve"
REJECT_REGISTRATION_URL = "/api/v1/registrations/{registration_id}/reject"

EVENT_ATTENDANCE_URL = "/api/v1/events/{event_id}/attendance"
ATTENDANCE_URL = "/api/v1/attendance/{attendance_id}"
CHECK_OUT_URL = "/api/v1/attendance/{attendance_id}/check-out"

EVENT_STATS_URL = "/api/v1/events/{event_id}/stats"
CROSS_EVENT_STATS_URL = "/api/v1/statistics/events"
PARTICIPATION_REPORT_URL = "/api/v1/statistics/participation"
