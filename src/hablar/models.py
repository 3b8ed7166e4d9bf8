from __future__ import annotations
import datetime as dt
from sqlalchemy import (
    String, Integer, DateTime, Boolean, Text, ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .db import Base

UTC = dt.timezone.utc
def utcnow() -> dt.datetime:
    return dt.datetime.now(tz=UTC)

class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)  # tg user id
    username: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    avatar_file_id: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[str] = mapped_column(String(16), default="user")  # user | admin
    ui_lang: Mapped[str] = mapped_column(String(8), default="en")  # en/es
    # name | avatar | done
    onboarding_step: Mapped[str] = mapped_column(String(16), default="name")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

class Lesson(Base):
    __tablename__ = "lessons"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(256))
    description: Mapped[str] = mapped_column(Text, default="")
    order_index: Mapped[int] = mapped_column(Integer, index=True)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)  # storage path

    questions: Mapped[list["PracticeQuestion"]] = relationship(
        "PracticeQuestion",
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="PracticeQuestion.order_index",
    )

class PracticeQuestion(Base):
    __tablename__ = "practice_questions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lesson_id: Mapped[int] = mapped_column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), index=True)
    order_index: Mapped[int] = mapped_column(Integer)
    question: Mapped[str] = mapped_column(Text)
    answers_json: Mapped[str] = mapped_column(Text, default="[]")  # JSON list of accepted answers
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    audio: Mapped[str | None] = mapped_column(String(512), nullable=True)

    lesson: Mapped[Lesson] = relationship("Lesson", back_populates="questions")

    __table_args__ = (Index("ix_practice_questions_lesson_order", "lesson_id", "order_index"),)

class LessonProgress(Base):
    __tablename__ = "lesson_progress"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    lesson_id: Mapped[int] = mapped_column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), index=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    score: Mapped[int] = mapped_column(Integer, default=0)
    best_score: Mapped[int] = mapped_column(Integer, default=0)
    total: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_progress_user_lesson"),)
