# scripts/seed_interview.py
"""
Create a candidate, an HR owner, a job and a scheduled interview room for local
testing, then print a bearer token for each user.

    python scripts/seed_interview.py DEMO42 --questions 3 --title "Backend Engineer"
"""
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import argparse
from datetime import datetime, timedelta, timezone

from core.security import create_access_token
from db.init_db import init_db
from db.session import SessionLocal
from db import models as db_models


def _user(db, email, role):
    user = db.query(db_models.User).filter(db_models.User.email == email).one_or_none()
    if user is None:
        user = db_models.User(email=email, role=role, is_active=True)
        db.add(user)
        db.flush()
    return user


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("room_code")
    parser.add_argument("--title", default="Backend Engineer")
    parser.add_argument("--description", default="")
    parser.add_argument("--questions", type=int, default=3)
    parser.add_argument("--screening", default=None, help="CV screening summary to attach")
    parser.add_argument("--minutes", type=int, default=60, help="length of the interview window")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        existing = db.query(db_models.Interview).filter(db_models.Interview.room_code == args.room_code).one_or_none()
        if existing:
            print(f"Room {args.room_code} already exists (interview id={existing.id})")
            return

        candidate = _user(db, f"candidate+{args.room_code.lower()}@example.com", db_models.UserRole.candidate)
        hr = _user(db, f"hr+{args.room_code.lower()}@example.com", db_models.UserRole.hr)

        job = db_models.Job(title=args.title, description=args.description, hr_id=hr.id)
        db.add(job)
        db.flush()

        application = db_models.Application(job_id=job.id, candidate_id=candidate.id, status="screened")
        db.add(application)
        db.flush()
        if args.screening:
            db.add(db_models.Screening(application_id=application.id, summary=args.screening))

        now = datetime.now(timezone.utc)
        interview = db_models.Interview(
            room_code=args.room_code,
            candidate_id=candidate.id,
            job_id=job.id,
            start_at=now,
            end_at=now + timedelta(minutes=args.minutes),
            number_of_questions=args.questions,
        )
        db.add(interview)
        db.commit()

        print(f"Created interview {interview.id} in room {args.room_code}")
        print(f"candidate token: {create_access_token(subject=str(candidate.id))}")
        print(f"hr token:        {create_access_token(subject=str(hr.id))}")
    finally:
        db.close()

if __name__ == "__main__":
    main()
