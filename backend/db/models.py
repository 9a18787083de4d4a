# db/models.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Float,
    DateTime,
    func,
    ForeignKey,
    Boolean,
)
from sqlalchemy.orm import relationship
from .session import Base

import enum
from sqlalchemy.types import Enum as SAEnum


class UserRole(str, enum.Enum):
    candidate = "candidate"
    hr = "hr"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(SAEnum(UserRole, native_enum=False), nullable=False, default=UserRole.candidate)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    hr_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    hr = relationship("User")


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(50), nullable=False, default="submitted")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    screenings = relationship("Screening", back_populates="application", cascade="all, delete-orphan")


class Screening(Base):
    """CV-screening result written by the screening pipeline; read here for interview context."""
    __tablename__ = "screenings"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    total_score = Column(Float, nullable=True)
    summary = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    application = relationship("Application", back_populates="screenings")


class InterviewStatus(str, enum.Enum):
    scheduled = "scheduled"
    completed = "completed"


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    room_code = Column(String(64), nullable=False, unique=True, index=True)
    candidate_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    start_at = Column(DateTime(timezone=True), nullable=True)
    end_at = Column(DateTime(timezone=True), nullable=True)
    number_of_questions = Column(Integer, nullable=False, default=5)
    status = Column(SAEnum(InterviewStatus, native_enum=False), nullable=False, default=InterviewStatus.scheduled)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    job = relationship("Job")
    candidate = relationship("User", foreign_keys=[candidate_id])
    summaries = relationship("InterviewSummary", back_populates="interview", cascade="all, delete-orphan")


class InterviewSummary(Base):
    __tablename__ = "summary"

    id = Column(Integer, primary_key=True, index=True)
    interview_id = Column(Integer, ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Float, nullable=True)
    rating = Column(String(100), nullable=True)
    overall_summary = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    interview = relationship("Interview", back_populates="summaries")


class MessageSender(str, enum.Enum):
    candidate = "candidate"
    hr = "hr"
    agent = "agent"
    system = "system"


class InterviewMessage(Base):
    __tablename__ = "interview_messages"

    id = Column(Integer, primary_key=True, index=True)
    interview_id = Column(Integer, ForeignKey("interviews.id", ondelete="CASCADE"), nullable=False, index=True)
    sender = Column(SAEnum(MessageSender, native_enum=False), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
