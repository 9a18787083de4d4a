# backend/services/session_store.py
"""
Process-wide registry of live interview sessions, keyed by room code.

Created once at import time and never torn down: a session lives until the
process exits, so a restart drops every interview that had not completed.
Each room also gets an asyncio.Lock; callers mutate a session only while
holding its room's lock.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

COMPLETION_SENTINEL = "interview_complete"


def status_is_sentinel(status: Optional[str]) -> bool:
    return (status or "").strip().lower() == COMPLETION_SENTINEL


@dataclass
class AnswerEntry:
    question_number: int
    question: str
    answer_text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    evaluation: Any = None


@dataclass
class InterviewSession:
    interview_id: int
    candidate_id: int
    job_id: int
    all_questions: Any
    current_question: str
    current_question_number: int = 1
    status: Optional[str] = "in_progress"
    answers: List[AnswerEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_complete(self) -> bool:
        return status_is_sentinel(self.status)

    def qa_pairs(self) -> List[Dict[str, str]]:
        """History as sent to the agent: question/answer only, evaluations left out."""
        return [{"question": a.question, "answer": a.answer_text} for a in self.answers]


class SessionRegistry:
    def __init__(self):
        self._sessions: Dict[str, InterviewSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, room_code: str) -> Optional[InterviewSession]:
        return self._sessions.get(room_code)

    def put(self, room_code: str, session: InterviewSession) -> None:
        self._sessions[room_code] = session

    def lock_for(self, room_code: str) -> asyncio.Lock:
        # setdefault is atomic with respect to the event loop
        return self._locks.setdefault(room_code, asyncio.Lock())

    def clear(self) -> None:
        self._sessions.clear()
        self._locks.clear()

    def __contains__(self, room_code: str) -> bool:
        return room_code in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


session_registry = SessionRegistry()
