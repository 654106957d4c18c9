from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..core.enums import SessionMode, SessionStatus
from ..database import Base, enum_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrainingSession(Base):
    """Per-athlete instance of a preset group; one row per (athlete, preset group)."""

    __tablename__ = "exercise_training_sessions"
    __table_args__ = (
        UniqueConstraint(
            "athlete_id", "exercise_preset_group_id", name="training_session_athlete_group_unique"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    athlete_id: Mapped[int] = mapped_column(
        ForeignKey("athletes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    athlete_group_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("athlete_groups.id", ondelete="SET NULL"), nullable=True
    )
    exercise_preset_group_id: Mapped[int] = mapped_column(
        ForeignKey("exercise_preset_groups.id"), index=True, nullable=False
    )
    session_mode: Mapped[SessionMode] = mapped_column(
        enum_column(SessionMode), default=SessionMode.INDIVIDUAL, nullable=False
    )
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[SessionStatus] = mapped_column(
        enum_column(SessionStatus), default=SessionStatus.PENDING, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class TrainingDetail(Base):
    """One recorded set, seeded from a preset detail when the session starts."""

    __tablename__ = "exercise_training_details"
    __table_args__ = (
        UniqueConstraint(
            "exercise_training_session_id",
            "exercise_preset_id",
            "set_index",
            name="training_detail_set_unique",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    exercise_training_session_id: Mapped[int] = mapped_column(
        ForeignKey("exercise_training_sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    exercise_preset_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("exercise_presets.id", ondelete="SET NULL"), nullable=True
    )
    set_index: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[Optional[int]] = mapped_column(Integer)
    resistance: Mapped[Optional[float]] = mapped_column(Float)
    resistance_unit_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("units.id", ondelete="SET NULL"), nullable=True
    )
    distance: Mapped[Optional[float]] = mapped_column(Float)
    duration: Mapped[Optional[int]] = mapped_column(Integer)
    tempo: Mapped[Optional[str]] = mapped_column(String(20))
    power: Mapped[Optional[float]] = mapped_column(Float)
    velocity: Mapped[Optional[float]] = mapped_column(Float)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
