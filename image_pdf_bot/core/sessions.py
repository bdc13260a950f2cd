"""In-memory per-user session store with TTL expiry.

WHY: The bot's conversation spans two webhook deliveries — the image and
then the file name. Something has to remember, per LINE user, which image
is waiting for a name. An in-memory store is sufficient for a single
process with no durability requirements.

HOW: Three components work together:
  SessionPhase   — enum of the two interaction phases
  PendingUpload  — dataclass for the image awaiting a file name
  SessionStore   — lock-guarded dict keyed by user id, with per-user
                   locks that serialize event handling for one user,
                   plus TTL-based cleanup

RULES:
- Absence from the store means IDLE; only AWAITING_FILENAME is stored
- A user has at most one PendingUpload; begin() never overwrites one
- All mutations of the shared dict hold self._lock
- user_lock(user_id) is held by the handler for the whole event, so two
  requests for the same user cannot interleave their read-modify-write
- A per-user lock entry lives only while some request holds or waits on
  it; the last one out removes it, so idle users cost nothing
- TTL is measured from PendingUpload.created_at; ttl_seconds <= 0 disables
  expiry
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


class SessionPhase(str, enum.Enum):
    """Interaction phase of one user's conversation."""

    IDLE = "idle"
    AWAITING_FILENAME = "awaiting_filename"


@dataclass
class PendingUpload:
    """An image that has been received and is waiting for a file name.

    RULES:
    - user_id: LINE user id of the sender
    - image_url: URL the converter fetches the image from
    - file_name: None until a valid (or attempted) name has been accepted
    - created_at: epoch seconds when the image event was handled
    """

    user_id: str
    image_url: str
    created_at: float
    file_name: Optional[str] = None


@dataclass
class SessionState:
    """Phase plus the owned PendingUpload (only while awaiting a name)."""

    phase: SessionPhase
    pending: Optional[PendingUpload] = None


@dataclass
class _UserLock:
    """A per-user lock plus the number of requests holding or waiting on it."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class SessionStore:
    """Thread-safe in-memory store of per-user sessions.

    RULES:
    - get() returns None for idle users and for expired sessions
    - begin() returns False (and changes nothing) if a session exists
    - reset() removes the session and returns what was removed
    - cleanup_expired() removes sessions past their TTL, returns the count
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sessions: Dict[str, SessionState] = {}
        self._user_locks: Dict[str, _UserLock] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @contextmanager
    def user_lock(self, user_id: str) -> Iterator[None]:
        """Hold the lock that serializes event handling for ``user_id``.

        RULES:
        - Every request for the same user gets the same lock while any of
          them is still inside or waiting
        - The entry is removed when the last request leaves
        """
        with self._lock:
            entry = self._user_locks.get(user_id)
            if entry is None:
                entry = _UserLock()
                self._user_locks[user_id] = entry
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._user_locks[user_id]

    def get(self, user_id: str) -> Optional[SessionState]:
        """Return the live session for ``user_id``, or None if idle.

        An expired session is dropped on access, so the caller sees IDLE.
        """
        with self._lock:
            state = self._sessions.get(user_id)
            if state is None:
                return None
            if self._is_expired(state):
                del self._sessions[user_id]
                logger.info("Session for %s expired", user_id)
                return None
            return state

    def phase(self, user_id: str) -> SessionPhase:
        state = self.get(user_id)
        return state.phase if state is not None else SessionPhase.IDLE

    def begin(self, pending: PendingUpload) -> bool:
        """Start AWAITING_FILENAME for ``pending.user_id`` if the user is idle.

        RULES:
        - Returns True if a new session was stored
        - Returns False if the user already has a live session; the
          existing PendingUpload is left untouched
        """
        with self._lock:
            existing = self._sessions.get(pending.user_id)
            if existing is not None and not self._is_expired(existing):
                return False
            self._sessions[pending.user_id] = SessionState(
                phase=SessionPhase.AWAITING_FILENAME,
                pending=pending,
            )
        return True

    def reset(self, user_id: str) -> Optional[SessionState]:
        """Return ``user_id`` to IDLE, returning the removed session if any."""
        with self._lock:
            return self._sessions.pop(user_id, None)

    def cleanup_expired(self) -> int:
        """Remove all sessions older than the TTL.

        RULES:
        - No-op when ttl_seconds <= 0
        - Per-user locks are left alone; user_lock() owns their lifetime
        - Returns the number of sessions removed
        """
        if self._ttl_seconds <= 0:
            return 0

        expired: List[str] = []
        with self._lock:
            for user_id, state in list(self._sessions.items()):
                if self._is_expired(state):
                    expired.append(user_id)
                    del self._sessions[user_id]

        for user_id in expired:
            logger.info("Expired session for %s", user_id)
        return len(expired)

    def _is_expired(self, state: SessionState) -> bool:
        if self._ttl_seconds <= 0 or state.pending is None:
            return False
        return self._clock() - state.pending.created_at > self._ttl_seconds
