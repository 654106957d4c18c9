from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.enums import UserRole
from ..database import Base, enum_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    external_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(enum_column(UserRole), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    coach: Mapped[Optional["Coach"]] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    athlete: Mapped[Optional["Athlete"]] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class Coach(Base):
    __tablename__ = "coaches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    speciality: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    user: Mapped[User] = relationship(back_populates="coach")


class AthleteGroup(Base):
    __tablename__ = "athlete_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    coach_id: Mapped[int] = mapped_column(
        ForeignKey("coaches.id", ondelete="CASCADE"), index=True, nullable=False
    )
    group_name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class Athlete(Base):
    __tablename__ = "athletes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    athlete_group_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("athlete_groups.id", ondelete="SET NULL"), index=True, nullable=True
    )
    height_cm: Mapped[Optional[float]] = mapped_column(nullable=True)
    weight_kg: Mapped[Optional[float]] = mapped_column(nullable=True)
    training_goals: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    experience: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    events: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    user: Mapped[User] = relationship(back_populates="athlete")


class AthleteGroupHistory(Base):
    """Append-only ledger of group membership changes; ``group_id`` NULL means removal."""

    __tablename__ = "athlete_group_histories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    athlete_id: Mapped[int] = mapped_column(
        ForeignKey("athletes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # no FK: the ledger keeps the id after the group itself is deleted
    group_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class ImmutableRowError(RuntimeError):
    pass


@event.listens_for(AthleteGroupHistory, "before_update")
def _reject_history_update(mapper, connection, target) -> None:
    raise ImmutableRowError(f"AthleteGroupHistory {target.id} is append-only.")


@event.listens_for(AthleteGroupHistory, "before_delete")
def _reject_history_delete(mapper, connection, target) -> None:
    raise ImmutableRowError(f"AthleteGroupHistory {target.id} is append-only.")
