"""WebSocket endpoint for live appointment updates."""
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from diagnostic_center.database import get_db
from diagnostic_center.errors import AuthenticationError
from diagnostic_center.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _extract_token(websocket: WebSocket) -> str | None:
    auth_header = websocket.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return websocket.query_params.get("token") or None


@router.websocket("/ws/appointments")
async def appointment_updates(websocket: WebSocket, db: Session = Depends(get_db)):
    """Receive appointment_created / _updated / _deleted events.

    The token is verified once, here; sessions are not re-checked per message.
    """
    token = _extract_token(websocket)
    if not token:
        logger.warning("Live connection attempted without token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        user = auth_service.user_from_token(db, token)
    except AuthenticationError as exc:
        logger.warning("Live connection rejected: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        db.close()  # not needed for the lifetime of the socket

    hub = websocket.app.state.notifier
    session_id = await hub.connect(websocket, user)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(session_id)
