from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.enums import SessionMode
from ..database import Base, enum_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Macrocycle(Base):
    __tablename__ = "macrocycles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    coach_id: Mapped[int] = mapped_column(
        ForeignKey("coaches.id", ondelete="CASCADE"), index=True, nullable=False
    )
    athlete_group_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("athlete_groups.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    mesocycles: Mapped[list["Mesocycle"]] = relationship(cascade="all, delete-orphan")


class Mesocycle(Base):
    __tablename__ = "mesocycles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    macrocycle_id: Mapped[int] = mapped_column(
        ForeignKey("macrocycles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    coach_id: Mapped[int] = mapped_column(
        ForeignKey("coaches.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    microcycles: Mapped[list["Microcycle"]] = relationship(cascade="all, delete-orphan")


class Microcycle(Base):
    __tablename__ = "microcycles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    mesocycle_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("mesocycles.id", ondelete="CASCADE"), index=True, nullable=True
    )
    coach_id: Mapped[int] = mapped_column(
        ForeignKey("coaches.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[Optional[str]] = mapped_column(String(120))
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_index: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class PresetGroup(Base):
    """A coach-authored session template."""

    __tablename__ = "exercise_preset_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    coach_id: Mapped[int] = mapped_column(
        ForeignKey("coaches.id", ondelete="CASCADE"), index=True, nullable=False
    )
    microcycle_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("microcycles.id", ondelete="SET NULL"), index=True, nullable=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    week: Mapped[Optional[int]] = mapped_column(Integer)
    day: Mapped[Optional[int]] = mapped_column(Integer)
    session_mode: Mapped[SessionMode] = mapped_column(
        enum_column(SessionMode), default=SessionMode.INDIVIDUAL, nullable=False
    )
    athlete_group_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("athlete_groups.id", ondelete="SET NULL"), nullable=True
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    presets: Mapped[list["Preset"]] = relationship(cascade="all, delete-orphan")


class Preset(Base):
    __tablename__ = "exercise_presets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    exercise_preset_group_id: Mapped[int] = mapped_column(
        ForeignKey("exercise_preset_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    exercise_id: Mapped[int] = mapped_column(ForeignKey("exercises.id"), nullable=False)
    preset_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    superset_id: Mapped[Optional[str]] = mapped_column(String(40))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    details: Mapped[list["PresetDetail"]] = relationship(cascade="all, delete-orphan")


class PresetDetail(Base):
    """One planned set of a preset."""

    __tablename__ = "exercise_preset_details"
    __table_args__ = (
        UniqueConstraint("exercise_preset_id", "set_index", name="preset_detail_set_unique"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    exercise_preset_id: Mapped[int] = mapped_column(
        ForeignKey("exercise_presets.id", ondelete="CASCADE"), index=True, nullable=False
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
    rest_time: Mapped[Optional[int]] = mapped_column(Integer)
