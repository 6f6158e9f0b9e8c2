from fastapi import APIRouter

from .features.attendance.router import router as attendance_router
from .features.browse_events.router import router as browse_events_router
from .features.manage_events.router import router as manage_events_router
from .features.registrations.router import router as registrations_router
from .features.review_registration.router import router as review_registration_router
from .features.statistics.router import router as statistics_router

router = APIRouter()

# browse first: /events/public must win over /events/{event_id}
router.include_router(browse_events_router)
router.include_router(manage_events_router)
router.include_router(registrations_router)
router.include_router(review_registration_router)
router.include_router(attendance_router)
router.include_router(statistics_router)
