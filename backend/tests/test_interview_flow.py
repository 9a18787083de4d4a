# backend/tests/test_interview_flow.py
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ai.agent_client import AgentResponseError, AgentTimeoutError
from db import models as m


def _start(client, seeded, auth):
    r = client.post(f"/interviews/{seeded.room}/initialize", headers=auth(seeded.candidate))
    assert r.status_code == 200, r.text
    return r.json()


def _answer(client, seeded, auth, text, **extra):
    return client.post(
        f"/interviews/{seeded.room}/answer",
        json={"answer": text, **extra},
        headers=auth(seeded.candidate),
    )


def _summaries(db, interview_id):
    db.expire_all()
    return db.execute(
        select(m.InterviewSummary).where(m.InterviewSummary.interview_id == interview_id)
    ).scalars().all()


# ---------------------------
# initialize
# ---------------------------

def test_initialize_without_screening_uses_placeholder_summary(client, make_interview, agent, auth):
    seeded = make_interview(job_title="Backend Engineer", number_of_questions=3)

    body = _start(client, seeded, auth)

    assert body == {
        "first_question": "Tell me about yourself.",
        "interview_status": "in_progress",
        "current_question_number": 1,
    }
    assert len(agent.init_calls) == 1
    call = agent.init_calls[0]
    assert call["job_title"] == "Backend Engineer"
    assert call["question_count"] == 3
    assert call["screening_summary"] == "No screening summary available"

    status = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate)).json()
    assert status["initialized"] is True
    assert status["current_question_number"] == 1
    assert status["total_answers"] == 0


def test_initialize_passes_latest_screening_and_description_fallback(client, make_interview, agent, auth, db):
    seeded = make_interview(job_description="", screening_summary="Solid Python background.")

    _start(client, seeded, auth)

    call = agent.init_calls[0]
    assert call["screening_summary"] == "Solid Python background."
    assert call["job_description"] == "Job Title: Backend Engineer. No detailed description available."


def test_initialize_is_idempotent(client, seeded, agent, auth):
    first = _start(client, seeded, auth)
    agent.start = AgentResponseError("must not be called again")

    second = _start(client, seeded, auth)

    assert second == first
    assert len(agent.init_calls) == 1


def test_initialize_unknown_room_is_404(client, seeded, agent, auth):
    r = client.post("/interviews/NOPE/initialize", headers=auth(seeded.candidate))
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"
    assert agent.init_calls == []


def test_initialize_by_non_candidate_is_403(client, seeded, agent, auth):
    for user in (seeded.hr, seeded.outsider):
        r = client.post(f"/interviews/{seeded.room}/initialize", headers=auth(user))
        assert r.status_code == 403
        assert r.json()["code"] == "forbidden"
    assert agent.init_calls == []


def test_initialize_timeout_is_408_and_creates_no_session(client, seeded, agent, auth):
    agent.start = AgentTimeoutError("slow")

    r = client.post(f"/interviews/{seeded.room}/initialize", headers=auth(seeded.candidate))

    assert r.status_code == 408
    assert r.json()["code"] == "upstream_timeout"
    status = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate)).json()
    assert status == {"initialized": False}


def test_initialize_upstream_failure_is_500(client, seeded, agent, auth):
    agent.start = AgentResponseError("no first question")

    r = client.post(f"/interviews/{seeded.room}/initialize", headers=auth(seeded.candidate))

    assert r.status_code == 500
    assert r.json()["code"] == "upstream_error"


# ---------------------------
# answer
# ---------------------------

def test_first_answer_moves_to_next_question(client, seeded, agent, auth):
    _start(client, seeded, auth)
    agent.next_turn(
        next_response="Describe a challenge you solved.",
        status="in_progress",
        answer_evaluation={"clarity": 4},
    )

    r = _answer(client, seeded, auth, "I have 5 years of experience.")

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["next_question"] == "Describe a challenge you solved."
    assert body["current_question_number"] == 2
    assert body["interview_status"] == "in_progress"
    assert body["answer_evaluation"] == {"clarity": 4}
    assert "completed" not in body
    assert "score" not in body

    call = agent.continue_calls[0]
    assert call["answer_text"] == "I have 5 years of experience."
    assert call["question_number"] == 1
    assert call["prior_answers"] == []
    assert call["all_questions"] == agent.start.all_questions

    status = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate)).json()
    assert status["total_answers"] == 1
    assert status["current_question"] == "Describe a challenge you solved."


def test_history_is_resent_in_full_without_evaluations(client, seeded, agent, auth):
    _start(client, seeded, auth)
    agent.next_turn(next_response="Q2?", answer_evaluation={"e": 1})
    agent.next_turn(next_response="Q3?", answer_evaluation={"e": 2})

    _answer(client, seeded, auth, "  first answer  ")
    _answer(client, seeded, auth, "second answer")

    assert agent.continue_calls[1]["question_number"] == 2
    assert agent.continue_calls[1]["prior_answers"] == [
        {"question": "Tell me about yourself.", "answer": "first answer"},
    ]


def test_blank_answer_is_rejected_without_side_effects(client, seeded, agent, auth):
    _start(client, seeded, auth)

    for blank in ("", "   \n\t", None):
        r = _answer(client, seeded, auth, blank)
        assert r.status_code == 400
        assert r.json()["code"] == "invalid_input"

    assert agent.continue_calls == []
    status = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate)).json()
    assert status["total_answers"] == 0
    assert status["current_question_number"] == 1


def test_answer_without_session_is_404(client, seeded, agent, auth):
    r = _answer(client, seeded, auth, "hello")
    assert r.status_code == 404
    assert "refresh" in r.json()["detail"]


def test_answer_by_non_candidate_is_403(client, seeded, agent, auth):
    _start(client, seeded, auth)
    r = client.post(
        f"/interviews/{seeded.room}/answer", json={"answer": "hi"}, headers=auth(seeded.hr)
    )
    assert r.status_code == 403
    assert agent.continue_calls == []


def test_explicit_completion_persists_one_summary(client, seeded, agent, auth, db):
    _start(client, seeded, auth)
    agent.next_turn(next_response="Describe a challenge you solved.")
    agent.next_turn(
        next_response="Thanks!",
        status="INTERVIEW_COMPLETE",
        answer_evaluation={"clarity": 5},
        score=82,
        rating="Excellent",
        overall_summary="Strong candidate.",
    )

    _answer(client, seeded, auth, "I have 5 years of experience.")
    r = _answer(client, seeded, auth, "I fixed a memory leak.")

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["completed"] is True
    assert body["total_questions"] == 2
    assert body["current_question_number"] == 2
    assert body["interview_status"] == "interview_complete"
    assert body["score"] == 82
    assert body["rating"] == "Excellent"
    assert body["overall_summary"] == "Strong candidate."
    assert "next_question" not in body

    rows = _summaries(db, seeded.interview.id)
    assert len(rows) == 1
    assert rows[0].score == 82
    assert rows[0].rating == "Excellent"
    db.refresh(seeded.interview)
    assert seeded.interview.status == m.InterviewStatus.completed


def test_empty_next_question_is_treated_as_completion(client, seeded, agent, auth, db):
    _start(client, seeded, auth)
    agent.next_turn(next_response="   ", status="in_progress", answer_evaluation="ok")

    r = _answer(client, seeded, auth, "My only answer.")

    body = r.json()
    assert body["completed"] is True
    assert body["total_questions"] == 1
    assert body["score"] is None
    assert body["overall_summary"] == "Interview completed without final evaluation"

    rows = _summaries(db, seeded.interview.id)
    assert len(rows) == 1
    assert rows[0].score is None
    assert rows[0].rating is None
    assert rows[0].overall_summary == "Interview completed without final evaluation"
    db.refresh(seeded.interview)
    assert seeded.interview.status == m.InterviewStatus.completed


def test_answers_after_completion_are_rejected(client, seeded, agent, auth, db):
    _start(client, seeded, auth)
    agent.next_turn(status="interview_complete", score=60, rating="Good", overall_summary="Fine.")
    _answer(client, seeded, auth, "done")

    r = _answer(client, seeded, auth, "one more thing")

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_state"
    assert len(agent.continue_calls) == 1
    status = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate)).json()
    assert status["total_answers"] == 1
    assert status["status"] == "interview_complete"
    assert len(_summaries(db, seeded.interview.id)) == 1


def test_upstream_failure_on_answer_leaves_session_unchanged(client, seeded, agent, auth):
    _start(client, seeded, auth)
    agent.turns.append(AgentTimeoutError("slow"))

    r = _answer(client, seeded, auth, "my answer")

    assert r.status_code == 408
    status = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate)).json()
    assert status["total_answers"] == 0
    assert status["current_question_number"] == 1


def test_stale_question_number_is_rejected(client, seeded, agent, auth):
    _start(client, seeded, auth)
    agent.next_turn(next_response="Q2?")
    assert _answer(client, seeded, auth, "first", question_number=1).status_code == 200

    r = _answer(client, seeded, auth, "first", question_number=1)

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_state"
    assert len(agent.continue_calls) == 1


def test_summary_write_failure_still_reports_completion(client, seeded, agent, auth, db, monkeypatch):
    _start(client, seeded, auth)
    agent.next_turn(status="INTERVIEW_COMPLETE", score=70, rating="Good", overall_summary="OK.")

    def _broken_commit(self):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(Session, "commit", _broken_commit)
    r = _answer(client, seeded, auth, "final answer")
    monkeypatch.undo()

    assert r.status_code == 200
    assert r.json()["completed"] is True
    assert _summaries(db, seeded.interview.id) == []
    status = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate)).json()
    assert status["status"] == "interview_complete"


def test_summary_insert_failure_keeps_interview_completed(client, seeded, agent, auth, db, monkeypatch):
    _start(client, seeded, auth)
    agent.next_turn(status="INTERVIEW_COMPLETE", score=88, rating="Good", overall_summary="Solid.")

    real_add = Session.add

    def _add_without_summaries(self, instance, *args, **kwargs):
        if isinstance(instance, m.InterviewSummary):
            raise SQLAlchemyError("summary table unavailable")
        return real_add(self, instance, *args, **kwargs)

    monkeypatch.setattr(Session, "add", _add_without_summaries)
    r = _answer(client, seeded, auth, "final answer")
    monkeypatch.undo()

    assert r.status_code == 200
    assert r.json()["completed"] is True
    assert _summaries(db, seeded.interview.id) == []
    assert db.get(m.Interview, seeded.interview.id).status == m.InterviewStatus.completed


# ---------------------------
# status
# ---------------------------

def test_status_before_initialize(client, seeded, auth):
    r = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.candidate))
    assert r.status_code == 200
    assert r.json() == {"initialized": False}


def test_status_for_non_candidate_is_403(client, seeded, agent, auth):
    _start(client, seeded, auth)
    r = client.get(f"/interviews/{seeded.room}/status", headers=auth(seeded.outsider))
    assert r.status_code == 403


# ---------------------------
# interview details & transcript
# ---------------------------

def test_interview_details_for_participants(client, seeded, auth):
    r = client.get(f"/interviews/{seeded.room}", headers=auth(seeded.candidate))
    assert r.status_code == 200
    body = r.json()
    assert body["user_role"] == "candidate"
    assert body["status"] == "scheduled"
    assert body["number_of_questions"] == 3
    assert body["job"]["title"] == "Backend Engineer"
    assert body["candidate"]["email"] == seeded.candidate.email
    assert body["is_active"] is True

    r_hr = client.get(f"/interviews/{seeded.room}", headers=auth(seeded.hr))
    assert r_hr.json()["user_role"] == "hr"

    r_other = client.get(f"/interviews/{seeded.room}", headers=auth(seeded.outsider))
    assert r_other.status_code == 403


def test_messages_are_listed_in_order_with_paging(client, seeded, auth, db):
    for i in range(5):
        db.add(m.InterviewMessage(interview_id=seeded.interview.id, sender=m.MessageSender.candidate, content=f"line {i}"))
    db.commit()

    r = client.get(f"/interviews/{seeded.room}/messages?limit=2&offset=1", headers=auth(seeded.hr))

    assert r.status_code == 200
    assert [msg["content"] for msg in r.json()["messages"]] == ["line 1", "line 2"]
