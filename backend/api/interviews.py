# backend/api/interviews.py
from datetime import datetime, timezone
from typing import Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from api.deps import get_current_user, get_db, get_interview_controller
from core.errors import Forbidden, NotFound
from db.models import Interview, InterviewMessage
from schemas.interview import (
    AnswerIn,
    AnswerOut,
    InitializeOut,
    InterviewOut,
    MessageList,
    SessionStatusOut,
)
from services.interview_session import InterviewSessionController

router = APIRouter(prefix="/interviews", tags=["interviews"])


def load_interview_for(db: Session, room_code: str, user) -> Tuple[Interview, str]:
    """(interview, role) for a participant; NotFound / Forbidden otherwise."""
    interview = db.execute(
        select(Interview).where(Interview.room_code == room_code)
    ).scalar_one_or_none()
    if interview is None:
        raise NotFound("Interview not found")
    if user.id == interview.candidate_id:
        return interview, "candidate"
    if user.id == interview.job.hr_id:
        return interview, "hr"
    raise Forbidden("Not authorized to access this interview")


def _within(start_at, end_at) -> bool:
    if start_at is None or end_at is None:
        return False
    now = datetime.now(timezone.utc)
    # sqlite hands back naive datetimes; treat them as UTC
    if start_at.tzinfo is None:
        start_at = start_at.replace(tzinfo=timezone.utc)
    if end_at.tzinfo is None:
        end_at = end_at.replace(tzinfo=timezone.utc)
    return start_at <= now <= end_at


def message_dict(m: InterviewMessage) -> dict:
    return {
        "id": m.id,
        "sender": m.sender.value,
        "content": m.content,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }


@router.get("/{room_code}", response_model=InterviewOut)
def get_interview(room_code: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    interview, role = load_interview_for(db, room_code, user)
    return {
        "id": interview.id,
        "room_code": interview.room_code,
        "start_at": interview.start_at,
        "end_at": interview.end_at,
        "status": interview.status.value,
        "number_of_questions": interview.number_of_questions,
        "job": {
            "id": interview.job.id,
            "title": interview.job.title,
            "description": interview.job.description,
        },
        "candidate": {
            "full_name": interview.candidate.full_name,
            "email": interview.candidate.email,
        },
        "is_active": _within(interview.start_at, interview.end_at),
        "user_role": role,
    }


@router.post("/{room_code}/initialize", response_model=InitializeOut)
async def initialize_interview(
    room_code: str,
    user=Depends(get_current_user),
    controller: InterviewSessionController = Depends(get_interview_controller),
):
    return await controller.initialize(room_code, user.id)


@router.post("/{room_code}/answer", response_model=AnswerOut, response_model_exclude_unset=True)
async def submit_answer(
    room_code: str,
    payload: AnswerIn,
    user=Depends(get_current_user),
    controller: InterviewSessionController = Depends(get_interview_controller),
):
    return await controller.submit_answer(
        room_code, user.id, payload.answer, question_number=payload.question_number
    )


@router.get("/{room_code}/status", response_model=SessionStatusOut, response_model_exclude_unset=True)
def session_status(
    room_code: str,
    user=Depends(get_current_user),
    controller: InterviewSessionController = Depends(get_interview_controller),
):
    return controller.get_status(room_code, user.id)


@router.get("/{room_code}/messages", response_model=MessageList)
def list_messages(
    room_code: str,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    interview, _ = load_interview_for(db, room_code, user)
    rows = db.execute(
        select(InterviewMessage)
        .where(InterviewMessage.interview_id == interview.id)
        .order_by(InterviewMessage.created_at.asc(), InterviewMessage.id.asc())
        .offset(offset)
        .limit(limit)
    ).scalars().all()
    return {"messages": [message_dict(m) for m in rows]}
