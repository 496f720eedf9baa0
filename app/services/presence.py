"""
Logged-in users tracker
"""
import logging
import re
import time
from datetime import datetime
from typing import Callable, List, Optional

from cachetools import TTLCache

from app.core.config import settings
from app.models.user import User
from app.schemas.user import LoggedInUser

logger = logging.getLogger(__name__)

_MOBILE = re.compile(r"mobile", re.IGNORECASE)
_TABLET = re.compile(r"tablet|ipad", re.IGNORECASE)


def device_type(user_agent: Optional[str]) -> str:
    """Coarse device class from a User-Agent header"""
    if not user_agent:
        return "Unknown Device"
    if _MOBILE.search(user_agent):
        return "Mobile"
    if _TABLET.search(user_agent):
        return "Tablet"
    return "Desktop"


class PresenceTracker:
    """
    Users seen logging in during the last ``ttl_minutes``.

    Entries expire on their own; logout removes them early.
    """

    def __init__(
        self,
        ttl_minutes: int = settings.PRESENCE_TTL_MINUTES,
        maxsize: int = settings.PRESENCE_MAX_USERS,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl_minutes * 60, timer=timer)

    def touch(self, user: User, user_agent: Optional[str] = None) -> LoggedInUser:
        entry = LoggedInUser(
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            user_type=user.user_type,
            last_active=datetime.utcnow(),
            device_info=device_type(user_agent),
            two_factor_enabled=bool(user.two_factor_enabled),
        )
        self._cache[user.id] = entry
        logger.debug(f"User {user.id} marked as logged in from {entry.device_info}")
        return entry

    def remove(self, user_id: int) -> None:
        self._cache.pop(user_id, None)

    def active(self) -> List[LoggedInUser]:
        self._cache.expire()
        return list(self._cache.values())

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)


# Global tracker instance
presence_tracker = PresenceTracker()
