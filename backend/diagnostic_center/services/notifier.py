"""Live-update fan-out to connected WebSocket sessions.

The hub owns the set of live sessions and the event loop serving them.
``broadcast`` may be called from any thread (sync routes run in a worker
pool): it schedules delivery on the hub's loop and returns immediately.
There is no backlog: sessions that connect later never see past events.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from diagnostic_center.timeutils import utcnow

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "appointment_created"
APPOINTMENT_UPDATED = "appointment_updated"
APPOINTMENT_DELETED = "appointment_deleted"

EVENT_TYPES = {
    APPOINTMENT_CREATED: "CREATE",
    APPOINTMENT_UPDATED: "UPDATE",
    APPOINTMENT_DELETED: "DELETE",
}


class NotificationUnavailableError(RuntimeError):
    """No running loop is available to deliver to the live sessions."""


@dataclass
class LiveSession:
    session_id: str
    websocket: Any
    user_id: str
    email: str


class LiveUpdateHub:
    def __init__(self):
        self._sessions: dict[str, LiveSession] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    async def connect(self, websocket, user) -> str:
        """Accept an authenticated socket and add it to the fan-out set."""
        self._loop = asyncio.get_running_loop()
        await websocket.accept()
        session = LiveSession(
            session_id=str(uuid.uuid4()),
            websocket=websocket,
            user_id=user.user_id,
            email=user.email,
        )
        self._sessions[session.session_id] = session
        logger.info("Live session %s connected (user %s)", session.session_id, user.email)
        return session.session_id

    def disconnect(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info("Live session %s disconnected (user %s)", session_id, session.email)

    def broadcast(self, event_kind: str, payload: dict[str, Any]) -> None:
        """Fire-and-forget delivery of one event to every live session."""
        message = {
            "event": event_kind,
            "type": EVENT_TYPES[event_kind],
            "data": payload,
            "timestamp": utcnow().isoformat(),
        }
        if not self._sessions:
            logger.debug("No live sessions for %s", event_kind)
            return
        loop = self._loop
        if loop is None or loop.is_closed() or not loop.is_running():
            raise NotificationUnavailableError("No delivery channel available")

        logger.info("Broadcasting %s to %d session(s)", event_kind, len(self._sessions))
        future = asyncio.run_coroutine_threadsafe(self._deliver(message), loop)
        future.add_done_callback(_log_delivery_failure)

    async def _deliver(self, message: dict[str, Any]) -> None:
        for session in list(self._sessions.values()):
            try:
                await session.websocket.send_json(message)
            except Exception:
                logger.warning("Dropping live session %s after failed send", session.session_id, exc_info=True)
                self.disconnect(session.session_id)


def _log_delivery_failure(future) -> None:
    if not future.cancelled() and future.exception() is not None:
        logger.error("Live update delivery failed", exc_info=future.exception())
