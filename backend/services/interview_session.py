# backend/services/interview_session.py
"""
Interview session controller: initialize / answer / status for one room.

In-memory state lives in the SessionRegistry; durable writes happen only when
an interview completes (interview status, then one summary row, each in its
own commit). Those writes are best-effort: the completion decision is made in
memory first and a storage failure is logged, never surfaced to the candidate.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ai.agent_client import AgentTimeoutError, AgentError
from core.errors import Forbidden, InvalidInput, InvalidState, NotFound, UpstreamError, UpstreamTimeout
from db.models import (
    Application,
    Interview,
    InterviewStatus,
    InterviewSummary,
    Screening,
)
from services.session_store import (
    COMPLETION_SENTINEL,
    AnswerEntry,
    InterviewSession,
    SessionRegistry,
    status_is_sentinel,
)

log = logging.getLogger(__name__)

NO_SCREENING_SUMMARY = "No screening summary available"
FALLBACK_SUMMARY = "Interview completed without final evaluation"


def is_completion(status: Optional[str], next_question: Optional[str]) -> bool:
    """An explicit sentinel status, or no next question at all, both end the interview."""
    return status_is_sentinel(status) or not (next_question or "").strip()


def job_description_or_placeholder(title: str, description: Optional[str]) -> str:
    if description and description.strip():
        return description
    return f"Job Title: {title}. No detailed description available."


def _as_score(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        log.warning("agent returned a non-numeric score: %r", value)
        return None


class InterviewSessionController:
    def __init__(self, db: Session, registry: SessionRegistry, agent):
        self.db = db
        self.registry = registry
        self.agent = agent

    # ---------------------------
    # context lookups
    # ---------------------------
    def _interview_by_room(self, room_code: str) -> Interview:
        interview = self.db.execute(
            select(Interview).where(Interview.room_code == room_code)
        ).scalar_one_or_none()
        if interview is None:
            raise NotFound("Interview not found")
        return interview

    def _screening_summary(self, interview: Interview) -> str:
        row = self.db.execute(
            select(Screening.summary)
            .join(Application, Application.id == Screening.application_id)
            .where(
                Application.job_id == interview.job_id,
                Application.candidate_id == interview.candidate_id,
            )
            .order_by(Screening.created_at.desc(), Screening.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        if not row or not row.strip():
            return NO_SCREENING_SUMMARY
        return row

    # ---------------------------
    # operations
    # ---------------------------
    async def initialize(self, room_code: str, requester_id: int) -> Dict[str, Any]:
        interview = self._interview_by_room(room_code)
        if requester_id != interview.candidate_id:
            raise Forbidden("Not authorized")

        async with self.registry.lock_for(room_code):
            existing = self.registry.get(room_code)
            if existing is not None:
                return {
                    "first_question": existing.current_question,
                    "interview_status": existing.status,
                    "current_question_number": existing.current_question_number,
                }

            job = interview.job
            screening_summary = self._screening_summary(interview)
            log.info(
                "initializing interview session",
                extra={
                    "room_code": room_code,
                    "job_id": job.id,
                    "number_of_questions": interview.number_of_questions,
                    "has_screening": screening_summary != NO_SCREENING_SUMMARY,
                },
            )
            try:
                start = await self.agent.initialize_interview(
                    job_title=job.title,
                    job_description=job_description_or_placeholder(job.title, job.description),
                    question_count=interview.number_of_questions,
                    screening_summary=screening_summary,
                )
            except AgentTimeoutError as e:
                raise UpstreamTimeout("Interview initialization timeout. Please try again.") from e
            except AgentError as e:
                raise UpstreamError("Failed to initialize interview with AI service") from e

            session = InterviewSession(
                interview_id=interview.id,
                candidate_id=interview.candidate_id,
                job_id=interview.job_id,
                all_questions=start.all_questions,
                current_question=start.first_question,
                current_question_number=1,
                status=start.status,
            )
            self.registry.put(room_code, session)
            log.info("interview session created", extra={"room_code": room_code, "interview_id": interview.id})

            return {
                "first_question": start.first_question,
                "interview_status": start.status,
                "current_question_number": 1,
            }

    async def submit_answer(
        self,
        room_code: str,
        requester_id: int,
        answer_text: Optional[str],
        question_number: Optional[int] = None,
    ) -> Dict[str, Any]:
        answer = (answer_text or "").strip()
        if not answer:
            raise InvalidInput("Answer is required")

        session = self.registry.get(room_code)
        if session is None:
            raise NotFound("Interview session not found. Please refresh and try again.")
        if requester_id != session.candidate_id:
            raise Forbidden("Not authorized")

        async with self.registry.lock_for(room_code):
            if session.is_complete:
                raise InvalidState("Interview has already been completed")
            if question_number is not None and question_number != session.current_question_number:
                raise InvalidState(
                    f"Answer is for question {question_number} but the current question is "
                    f"{session.current_question_number}"
                )

            entry = AnswerEntry(
                question_number=session.current_question_number,
                question=session.current_question,
                answer_text=answer,
            )
            try:
                turn = await self.agent.continue_interview(
                    answer_text=answer,
                    question_number=session.current_question_number,
                    all_questions=session.all_questions,
                    prior_answers=session.qa_pairs(),
                )
            except AgentTimeoutError as e:
                raise UpstreamTimeout("Request timeout. Please try again.") from e
            except AgentError as e:
                raise UpstreamError("Failed to process answer with AI service") from e

            entry.evaluation = turn.answer_evaluation
            session.answers.append(entry)
            log.info(
                "answer accepted",
                extra={"room_code": room_code, "question_number": entry.question_number},
            )

            result: Dict[str, Any] = {
                "answer_evaluation": turn.answer_evaluation,
                "current_question_number": session.current_question_number,
            }

            if is_completion(turn.status, turn.next_question):
                session.status = COMPLETION_SENTINEL
                log.info(
                    "interview complete",
                    extra={
                        "room_code": room_code,
                        "explicit": status_is_sentinel(turn.status),
                        "total_questions": session.current_question_number,
                    },
                )
                score = _as_score(turn.score)
                overall_summary = turn.overall_summary or FALLBACK_SUMMARY
                self._persist_completion(session, score, turn.rating, overall_summary)
                result.update(
                    interview_status=session.status,
                    completed=True,
                    total_questions=session.current_question_number,
                    score=score,
                    rating=turn.rating,
                    overall_summary=overall_summary,
                )
            else:
                session.status = turn.status
                session.current_question_number += 1
                session.current_question = turn.next_question
                result.update(
                    interview_status=session.status,
                    next_question=turn.next_question,
                    current_question_number=session.current_question_number,
                )
            return result

    def get_status(self, room_code: str, requester_id: int) -> Dict[str, Any]:
        session = self.registry.get(room_code)
        if session is None:
            return {"initialized": False}
        if requester_id != session.candidate_id:
            raise Forbidden("Not authorized")
        return {
            "initialized": True,
            "status": session.status,
            "current_question": session.current_question,
            "current_question_number": session.current_question_number,
            "total_answers": len(session.answers),
        }

    # ---------------------------
    # durable writes (best-effort)
    # ---------------------------
    def _persist_completion(
        self,
        session: InterviewSession,
        score: Optional[float],
        rating: Optional[str],
        overall_summary: str,
    ) -> None:
        # status and summary commit separately; a lost summary must not undo the status
        try:
            interview = self.db.get(Interview, session.interview_id)
            if interview is not None:
                interview.status = InterviewStatus.completed
                self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            log.exception("failed to mark interview completed", extra={"interview_id": session.interview_id})

        try:
            self.db.add(
                InterviewSummary(
                    interview_id=session.interview_id,
                    score=score,
                    rating=rating,
                    overall_summary=overall_summary,
                )
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            log.exception("failed to persist interview summary", extra={"interview_id": session.interview_id})
