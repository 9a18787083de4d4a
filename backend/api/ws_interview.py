# backend/api/ws_interview.py
"""
Live transcript channel for an interview room.

Best-effort and separate from the REST question/answer flow: the candidate's
socket posts chat lines (and relays the agent's questions), HR sockets only
watch. Every accepted line is persisted to interview_messages and broadcast to
the room.
"""
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.deps import get_db, load_user
from api.interviews import message_dict
from core.config import settings
from db.models import Interview, InterviewMessage, MessageSender
from services.rooms import room_manager, send_json_safe

router = APIRouter()
log = logging.getLogger(__name__)


class RoomMember:
    """What an authenticated socket is allowed to do in its room."""

    def __init__(self, user_id: int, role: str, room_code: str, interview_id: int):
        self.user_id = user_id
        self.role = role
        self.room_code = room_code
        self.interview_id = interview_id


def recent_messages(db: Session, interview_id: int, limit: int) -> list:
    """The latest `limit` transcript lines, oldest first."""
    rows = db.execute(
        select(InterviewMessage)
        .where(InterviewMessage.interview_id == interview_id)
        .order_by(InterviewMessage.created_at.desc(), InterviewMessage.id.desc())
        .limit(limit)
    ).scalars().all()
    return [message_dict(m) for m in reversed(rows)]


async def _error(ws: WebSocket, message: str) -> None:
    await send_json_safe(ws, {"type": "error", "message": message})


async def handle_auth(ws: WebSocket, db: Session, frame: Dict[str, Any]) -> Optional[RoomMember]:
    token = frame.get("token")
    room_code = frame.get("roomCode") or frame.get("room_code")
    if not token or not room_code:
        await _error(ws, "token and roomCode are required")
        return None

    user = load_user(db, str(token))
    if user is None:
        await _error(ws, "Authentication failed")
        return None

    interview = db.execute(
        select(Interview).where(Interview.room_code == str(room_code))
    ).scalar_one_or_none()
    if interview is None:
        await _error(ws, "Interview not found")
        return None

    if user.id == interview.candidate_id:
        role = "candidate"
    elif user.id == interview.job.hr_id:
        role = "hr"
    else:
        await _error(ws, "Not authorized to access this interview")
        return None

    member = RoomMember(user.id, role, interview.room_code, interview.id)
    room_manager.connect(member.room_code, ws)
    await send_json_safe(ws, {"type": "auth_success", "user_role": role})
    await send_json_safe(ws, {
        "type": "message_history",
        "messages": recent_messages(db, interview.id, settings.transcript_history_limit),
    })
    return member


async def handle_post(
    ws: WebSocket,
    db: Session,
    member: Optional[RoomMember],
    content: Any,
    sender: MessageSender,
) -> None:
    if member is None:
        await _error(ws, "Not authenticated")
        return
    if member.role != "candidate":
        await _error(ws, "Only the candidate can post to this interview")
        return
    text = str(content or "").strip()
    if not text:
        await _error(ws, "Message content is required")
        return

    msg = InterviewMessage(interview_id=member.interview_id, sender=sender, content=text)
    try:
        db.add(msg)
        db.commit()
        db.refresh(msg)
    except SQLAlchemyError:
        db.rollback()
        log.exception("failed to store interview message", extra={"room_code": member.room_code})
        await _error(ws, "Failed to send message")
        return

    await room_manager.broadcast(member.room_code, {"type": "message", "message": message_dict(msg)})


@router.websocket("/ws/interviews")
async def interview_ws(websocket: WebSocket, db: Session = Depends(get_db)):
    await websocket.accept()
    member: Optional[RoomMember] = None

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except ValueError:
                await _error(websocket, "Invalid message format")
                continue
            if not isinstance(frame, dict):
                await _error(websocket, "Invalid message format")
                continue

            mtype = frame.get("type")
            if mtype == "auth":
                if member is not None:
                    room_manager.disconnect(member.room_code, websocket)
                member = await handle_auth(websocket, db, frame)
            elif mtype == "message":
                await handle_post(websocket, db, member, frame.get("content"), MessageSender.candidate)
            elif mtype == "interview_question":
                # candidate client relays the question it got from the REST flow
                await handle_post(websocket, db, member, frame.get("question"), MessageSender.agent)
            elif mtype == "ping":
                await send_json_safe(websocket, {"type": "pong"})
            else:
                log.info("unknown websocket frame type: %s", mtype)
                await _error(websocket, f"Unknown message type: {mtype}")

    except WebSocketDisconnect:
        pass
    finally:
        if member is not None:
            room_manager.disconnect(member.room_code, websocket)
