# backend/ai/agent_client.py
"""
Client for the external interview agent.

The agent is stateless: every continuation call carries the opaque question
set returned at initialization plus the full question/answer history so far.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from core.config import settings

log = logging.getLogger(__name__)

INITIALIZE_PATH = "/api/initialize_interview"
CONTINUE_PATH = "/api/continue_interview"


class AgentError(Exception):
    pass


class AgentTimeoutError(AgentError):
    """The agent did not answer within the configured deadline."""


class AgentResponseError(AgentError):
    """Non-2xx status, unreachable host, or a body we cannot use."""


@dataclass
class AgentStart:
    first_question: str
    all_questions: Any
    status: Optional[str]


@dataclass
class AgentTurn:
    next_question: Optional[str]
    status: Optional[str]
    answer_evaluation: Any = None
    score: Any = None
    rating: Optional[str] = None
    overall_summary: Optional[str] = None


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class InterviewAgentClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.agent_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.agent_timeout_seconds
        self.api_key = api_key if api_key is not None else settings.agent_api_key
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        log.info("agent call %s", path)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(url, json=payload, headers=self._headers())
                r.raise_for_status()
        except httpx.TimeoutException as e:
            log.warning("agent call %s timed out after %ss", path, self.timeout)
            raise AgentTimeoutError(f"interview agent timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            log.error("agent call %s returned %s: %s", path, e.response.status_code, e.response.text[:500])
            raise AgentResponseError(f"interview agent returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            log.error("agent call %s failed: %s", path, e)
            raise AgentResponseError(f"interview agent request failed: {e}") from e

        try:
            body = r.json()
        except ValueError as e:
            raise AgentResponseError("interview agent returned a non-JSON body") from e
        if not isinstance(body, dict):
            raise AgentResponseError("interview agent returned an unexpected body shape")
        return body

    async def initialize_interview(
        self,
        job_title: str,
        job_description: str,
        question_count: int,
        screening_summary: str,
    ) -> AgentStart:
        body = await self._post(
            INITIALIZE_PATH,
            {
                "job_title": job_title,
                "job_description": job_description,
                "number_of_questions": question_count,
                "candidate_resume_screening": screening_summary,
            },
        )
        first_question = _clean_text(body.get("first_question"))
        if not first_question:
            raise AgentResponseError("interview agent did not return a first question")
        return AgentStart(
            first_question=first_question,
            all_questions=body.get("all_questions"),
            status=body.get("interview_status"),
        )

    async def continue_interview(
        self,
        answer_text: str,
        question_number: int,
        all_questions: Any,
        prior_answers: List[Dict[str, str]],
    ) -> AgentTurn:
        body = await self._post(
            CONTINUE_PATH,
            {
                "candidate_answer": answer_text,
                "current_question_number": question_number,
                "all_questions": all_questions,
                "previous_answers": prior_answers,
            },
        )
        return AgentTurn(
            next_question=_clean_text(body.get("next_response")),
            status=body.get("interview_status"),
            answer_evaluation=body.get("answer_evaluation"),
            score=body.get("score"),
            rating=_clean_text(body.get("rating")),
            overall_summary=_clean_text(body.get("overall_summary")),
        )


# ------------------------------
# Stub provider (local development, INTERVIEW_AGENT_PROVIDER=stub)
# ------------------------------
STUB_QUESTIONS = [
    "Tell me about yourself.",
    "Describe a challenge you solved recently and how you approached it.",
    "Walk me through a project from the {title} space you are proud of.",
    "How do you keep your skills current?",
    "What would your first month in this role look like?",
]


class StubInterviewAgent:
    """Deterministic agent with the same interface; asks N fixed questions then completes."""

    async def initialize_interview(self, job_title, job_description, question_count, screening_summary) -> AgentStart:
        n = max(1, int(question_count or 1))
        questions = [STUB_QUESTIONS[i % len(STUB_QUESTIONS)].format(title=job_title) for i in range(n)]
        log.info("Using stub interview agent (%d questions)", n)
        return AgentStart(
            first_question=questions[0],
            all_questions={"questions": questions},
            status="in_progress",
        )

    async def continue_interview(self, answer_text, question_number, all_questions, prior_answers) -> AgentTurn:
        questions = (all_questions or {}).get("questions") or []
        evaluation = {"length": len(answer_text.split()), "note": "stub evaluation"}
        if question_number < len(questions):
            return AgentTurn(
                next_question=questions[question_number],
                status="in_progress",
                answer_evaluation=evaluation,
            )
        return AgentTurn(
            next_question=None,
            status="INTERVIEW_COMPLETE",
            answer_evaluation=evaluation,
            score=50,
            rating="Average",
            overall_summary="Stub agent: interview finished without a real evaluation.",
        )


def build_agent_client():
    provider = (settings.agent_provider or "http").lower()
    if provider == "stub":
        return StubInterviewAgent()
    return InterviewAgentClient()
