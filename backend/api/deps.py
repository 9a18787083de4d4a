# api/deps.py
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from functools import lru_cache
from sqlalchemy.orm import Session

from ai.agent_client import build_agent_client
from core import security
from db import models as db_models
from db.session import SessionLocal
from services.interview_session import InterviewSessionController
from services.session_store import SessionRegistry, session_registry


# tokens are issued by the accounts service; tokenUrl only feeds the OpenAPI docs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def load_user(db: Session, token: str):
    """User for a bearer token, or None. Shared by REST and the websocket handshake."""
    user_id = security.user_id_from_token(token)
    if user_id is None:
        return None
    user = db.get(db_models.User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    user = load_user(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@lru_cache()
def get_agent_client():
    return build_agent_client()


def get_session_registry() -> SessionRegistry:
    return session_registry


def get_interview_controller(
    db: Session = Depends(get_db),
    registry: SessionRegistry = Depends(get_session_registry),
    agent=Depends(get_agent_client),
) -> InterviewSessionController:
    return InterviewSessionController(db=db, registry=registry, agent=agent)
