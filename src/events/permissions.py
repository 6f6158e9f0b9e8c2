from src.auth.identity import Identity
from src.events.errors import ForbiddenError


def ensure_staff(actor: Identity, action: str) -> None:
    """Raise ForbiddenError unless the caller holds the SK staff capability."""
    if not actor.is_staff:
        raise ForbiddenError(f"Only SK staff can {action}")
