"""In-memory registry of live application wizard sessions.

Each session is one WizardController keyed by its random session id and
bound to the caller that opened it. Sessions live only in this process;
abandoning one (or evicting it) leaves its draft on the platform as a draft.

Applicants who navigate away never call DELETE, so every entry carries an
idle deadline. Reads push the deadline forward; expired entries are closed
and dropped on ``get``, on ``add`` and by ``cleanup_expired``.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from app.core.errors import NotFoundError, ServiceUnavailableError
from app.services.wizard_controller import WizardController

logger = logging.getLogger(__name__)

# Default idle time before an untouched session is reclaimed (30 minutes)
DEFAULT_SESSION_TTL_MINUTES = 30


def owner_fingerprint(authorization: str | None) -> str:
    """Stable, non-reversible key for the caller's credentials."""
    return hashlib.sha256((authorization or "").encode("utf-8")).hexdigest()


@dataclass
class _Entry:
    controller: WizardController
    owner: str
    expires_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class WizardSessionStore:
    """Live wizard sessions.

    Args:
        limit: Maximum number of live sessions. Expired, submitted and closed
            sessions are evicted first when the limit is reached.
        ttl_minutes: Idle minutes before a session expires.
    """

    def __init__(
        self, limit: int = 1000, ttl_minutes: int = DEFAULT_SESSION_TTL_MINUTES
    ) -> None:
        self._limit = limit
        self._ttl = timedelta(minutes=ttl_minutes)
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def add(self, controller: WizardController, owner: str) -> None:
        """Register a loaded controller.

        Raises:
            ServiceUnavailableError: If the store is full of active sessions.
        """
        if len(self._entries) >= self._limit:
            await self._evict_finished()
        if len(self._entries) >= self._limit:
            raise ServiceUnavailableError(
                "Too many applications in progress. Please try again shortly."
            )
        self._entries[controller.session_id] = _Entry(
            controller=controller,
            owner=owner,
            expires_at=datetime.now(UTC) + self._ttl,
        )

    async def get(self, session_id: str, owner: str) -> WizardController:
        """Look up a session owned by ``owner`` and refresh its deadline.

        Raises:
            NotFoundError: Unknown or expired id, or the session belongs to
                someone else.
        """
        entry = self._entries.get(session_id)
        if entry is None or entry.owner != owner:
            raise NotFoundError("Application session", session_id)

        now = datetime.now(UTC)
        if now > entry.expires_at:
            del self._entries[session_id]
            await entry.controller.close()
            logger.info("Wizard session %s expired", session_id)
            raise NotFoundError("Application session", session_id)

        entry.expires_at = now + self._ttl
        return entry.controller

    async def remove(self, session_id: str, owner: str) -> None:
        """Close and forget a session.

        Raises:
            NotFoundError: Unknown id, or the session belongs to someone else.
        """
        controller = await self.get(session_id, owner)
        del self._entries[session_id]
        await controller.close()

    async def cleanup_expired(self) -> int:
        """Close and remove every expired session.

        Returns:
            Number of sessions removed.
        """
        now = datetime.now(UTC)
        expired = [
            session_id
            for session_id, entry in self._entries.items()
            if now > entry.expires_at
        ]
        for session_id in expired:
            entry = self._entries.pop(session_id)
            await entry.controller.close()
        return len(expired)

    async def close_all(self) -> None:
        """Close every session (application shutdown)."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            await entry.controller.close()

    async def _evict_finished(self) -> None:
        expired = await self.cleanup_expired()
        finished = [
            session_id
            for session_id, entry in self._entries.items()
            if entry.controller.is_submitted or entry.controller.is_closed
        ]
        for session_id in finished:
            entry = self._entries.pop(session_id)
            await entry.controller.close()
        if expired or finished:
            logger.info(
                "Evicted %d expired and %d finished wizard sessions",
                expired,
                len(finished),
            )
