"""
GoldBod Assay Office - Idle Session Tracking
=============================================
Server-side record of each user's last activity. A session that has been idle
longer than SESSION_IDLE_MINUTES is expired and must log in again.

The clock is injectable so idle expiry can be tested without sleeping.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from config.settings import SESSION_IDLE_MINUTES
from common.helpers import now_utc

logger = logging.getLogger("goldbod.security")


class SessionTracker:
    def __init__(self, idle_minutes: int = SESSION_IDLE_MINUTES, clock: Callable[[], datetime] = now_utc):
        self.idle_timeout = timedelta(minutes=idle_minutes)
        self.clock = clock
        self._last_seen: Dict[int, datetime] = {}
        self._lock = threading.Lock()

    def touch(self, user_id: int):
        """Record activity for a user (login or authenticated request)."""
        with self._lock:
            self._last_seen[user_id] = self.clock()

    def last_seen(self, user_id: int) -> Optional[datetime]:
        return self._last_seen.get(user_id)

    def is_idle(self, user_id: int) -> bool:
        """True when the user has no recorded activity or has been idle too long."""
        seen = self._last_seen.get(user_id)
        if seen is None:
            return True
        return self.clock() - seen > self.idle_timeout

    def expire(self, user_id: int):
        with self._lock:
            self._last_seen.pop(user_id, None)

    def check(self, user_id: int) -> bool:
        """Touch an active session; expire and return False for an idle one."""
        if self.is_idle(user_id):
            self.expire(user_id)
            logger.info(f"Session expired for user {user_id}")
            return False
        self.touch(user_id)
        return True


session_tracker = SessionTracker()


def get_session_tracker() -> SessionTracker:
    """FastAPI dependency (override in tests to inject a fake clock)."""
    return session_tracker
