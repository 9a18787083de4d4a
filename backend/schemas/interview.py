from typing import Any, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class AnswerIn(BaseModel):
    answer: Optional[str] = None
    # when sent, must match the session's current question (guards stale retries)
    question_number: Optional[int] = Field(default=None, ge=1)


class InitializeOut(BaseModel):
    first_question: str
    interview_status: Optional[str] = None
    current_question_number: int


class AnswerOut(BaseModel):
    interview_status: Optional[str] = None
    answer_evaluation: Any = None
    current_question_number: int
    next_question: Optional[str] = None
    completed: Optional[bool] = None
    total_questions: Optional[int] = None
    score: Optional[float] = None
    rating: Optional[str] = None
    overall_summary: Optional[str] = None


class SessionStatusOut(BaseModel):
    initialized: bool
    status: Optional[str] = None
    current_question: Optional[str] = None
    current_question_number: Optional[int] = None
    total_answers: Optional[int] = None


class JobBrief(BaseModel):
    id: int
    title: str
    description: Optional[str] = None


class CandidateBrief(BaseModel):
    full_name: Optional[str] = None
    email: str


class InterviewOut(BaseModel):
    id: int
    room_code: str
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    status: str
    number_of_questions: int
    job: JobBrief
    candidate: CandidateBrief
    is_active: bool
    user_role: str


class MessageOut(BaseModel):
    id: int
    sender: str
    content: str
    created_at: Optional[datetime] = None


class MessageList(BaseModel):
    messages: List[MessageOut]
