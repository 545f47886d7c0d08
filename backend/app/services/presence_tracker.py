"""
Presence Tracker - which staff members currently have the dashboard open.

Records live in process memory only and are keyed by staff label. A record is
considered online while its last heartbeat is within the window; stale records
are evicted lazily whenever the list is read.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from app.core.logging_config import logger
from app.core.security import StaffIdentity
from app.core.types import utcnow

DEFAULT_WINDOW_SECONDS = 35


@dataclass
class PresenceRecord:
    role: str
    label: str
    color: str
    last_seen: datetime
    login_time: datetime


class PresenceTracker:
    """In-memory online list with an inactivity window"""

    def __init__(
        self,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.window = timedelta(seconds=window_seconds)
        self._clock = clock or utcnow
        self._records: Dict[str, PresenceRecord] = {}

    def mark_online(self, identity: StaffIdentity) -> PresenceRecord:
        """Start (or restart) a session for this staff member"""
        now = self._clock()
        record = PresenceRecord(
            role=identity.role,
            label=identity.label,
            color=identity.color,
            last_seen=now,
            login_time=now,
        )
        self._records[identity.label] = record
        logger.debug(f"[Presence] {identity.label} online")
        return record

    def heartbeat(self, identity: StaffIdentity) -> PresenceRecord:
        """Refresh last_seen, creating the record if the session was evicted or never started"""
        record = self._records.get(identity.label)
        if record is None:
            return self.mark_online(identity)
        record.last_seen = self._clock()
        return record

    def mark_offline(self, label: str) -> bool:
        removed = self._records.pop(label, None) is not None
        if removed:
            logger.debug(f"[Presence] {label} offline")
        return removed

    def list_online(self) -> List[PresenceRecord]:
        """Evict stale records, then return the rest ordered by login time"""
        cutoff = self._clock() - self.window
        for label in [label for label, r in self._records.items() if r.last_seen < cutoff]:
            del self._records[label]
        return sorted(self._records.values(), key=lambda r: r.login_time)
