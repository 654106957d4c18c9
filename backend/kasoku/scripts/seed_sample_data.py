from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy.orm import Session

from kasoku.core.enums import SessionMode, UserRole
from kasoku.core.security import Principal, create_access_token
from kasoku.database import SessionLocal
from kasoku.models.exercise import Exercise, ExerciseType, Unit
from kasoku.models.plan import Macrocycle, Mesocycle, Microcycle, Preset, PresetDetail, PresetGroup
from kasoku.models.user import Athlete, AthleteGroup, AthleteGroupHistory, Coach, User
from kasoku.services.assignment import assign_preset_group

CATALOG = {
    "strength": [("Back Squat", "kg"), ("Romanian Deadlift", "kg")],
    "sprint": [("Flying 30m", "s"), ("Block Start", "s")],
    "plyometric": [("Box Jump", "cm")],
}


def ensure_user(db: Session, *, external_id: str, name: str, role: UserRole) -> User:
    user = db.query(User).filter_by(external_id=external_id).first()
    if user:
        return user
    user = User(external_id=external_id, name=name, email=f"{external_id}@example.com", role=role)
    if role == UserRole.COACH:
        user.coach = Coach(speciality="Sprints")
    else:
        user.athlete = Athlete(training_goals="Run faster", experience="intermediate", events=["100m"])
    db.add(user)
    db.flush()
    return user


def ensure_catalog(db: Session) -> dict[str, Exercise]:
    exercises: dict[str, Exercise] = {}
    for type_name, entries in CATALOG.items():
        exercise_type = db.query(ExerciseType).filter_by(type=type_name).first()
        if not exercise_type:
            exercise_type = ExerciseType(type=type_name)
            db.add(exercise_type)
            db.flush()
        for name, unit_name in entries:
            unit = db.query(Unit).filter_by(name=unit_name).first()
            if not unit:
                unit = Unit(name=unit_name)
                db.add(unit)
                db.flush()
            exercise = db.query(Exercise).filter_by(name=name).first()
            if not exercise:
                exercise = Exercise(name=name, exercise_type_id=exercise_type.id, unit_id=unit.id)
                db.add(exercise)
                db.flush()
            exercises[name] = exercise
    return exercises


def ensure_group(db: Session, *, coach: User, athletes: list[User]) -> AthleteGroup:
    group = db.query(AthleteGroup).filter_by(coach_id=coach.coach.id, group_name="Sprint Squad").first()
    if not group:
        group = AthleteGroup(coach_id=coach.coach.id, group_name="Sprint Squad")
        db.add(group)
        db.flush()
    for user in athletes:
        if user.athlete.athlete_group_id != group.id:
            user.athlete.athlete_group_id = group.id
            db.add(
                AthleteGroupHistory(
                    athlete_id=user.athlete.id,
                    group_id=group.id,
                    created_by=coach.id,
                    notes="Seeded",
                )
            )
    db.flush()
    return group


def ensure_week(
    db: Session, *, coach: User, group: AthleteGroup, exercises: dict[str, Exercise]
) -> list[PresetGroup]:
    coach_id = coach.coach.id
    macrocycle = db.query(Macrocycle).filter_by(coach_id=coach_id, name="Outdoor Season").first()
    if macrocycle:
        mesocycle_ids = [m.id for m in macrocycle.mesocycles]
        micro_ids = [
            row.id for row in db.query(Microcycle.id).filter(Microcycle.mesocycle_id.in_(mesocycle_ids))
        ]
        return db.query(PresetGroup).filter(PresetGroup.microcycle_id.in_(micro_ids)).all()

    today = date.today()
    week_start = today - timedelta(days=today.weekday())
    macrocycle = Macrocycle(
        coach_id=coach_id,
        athlete_group_id=group.id,
        name="Outdoor Season",
        start_date=week_start,
        end_date=week_start + timedelta(weeks=16),
    )
    mesocycle = Mesocycle(
        coach_id=coach_id,
        name="General Preparation",
        start_date=week_start,
        end_date=week_start + timedelta(weeks=4),
        position=1,
    )
    microcycle = Microcycle(
        coach_id=coach_id,
        name="Week 1",
        start_date=week_start,
        end_date=week_start + timedelta(days=6),
        week_index=1,
    )
    mesocycle.microcycles.append(microcycle)
    macrocycle.mesocycles.append(mesocycle)
    db.add(macrocycle)
    db.flush()

    sessions = [
        ("Acceleration + Strength", 1, [("Block Start", 4, None), ("Back Squat", 5, 100.0)]),
        ("Max Velocity", 3, [("Flying 30m", 3, None), ("Box Jump", 5, None)]),
        ("Posterior Chain", 5, [("Romanian Deadlift", 8, 80.0)]),
    ]
    groups = []
    for name, day, presets in sessions:
        preset_group = PresetGroup(
            coach_id=coach_id,
            microcycle_id=microcycle.id,
            name=name,
            date=week_start + timedelta(days=day - 1),
            week=1,
            day=day,
            session_mode=SessionMode.GROUP,
            athlete_group_id=group.id,
        )
        for order, (exercise_name, reps, load) in enumerate(presets):
            preset = Preset(exercise_id=exercises[exercise_name].id, preset_order=order)
            for set_index in range(1, 4):
                preset.details.append(
                    PresetDetail(set_index=set_index, reps=reps, resistance=load, rest_time=180)
                )
            preset_group.presets.append(preset)
        db.add(preset_group)
        groups.append(preset_group)
    db.flush()
    return groups


def main() -> None:
    db = SessionLocal()
    try:
        coach = ensure_user(db, external_id="demo-coach", name="Coach Demo", role=UserRole.COACH)
        athletes = [
            ensure_user(db, external_id=f"demo-athlete-{n}", name=f"Athlete {n}", role=UserRole.ATHLETE)
            for n in (1, 2, 3)
        ]
        exercises = ensure_catalog(db)
        group = ensure_group(db, coach=coach, athletes=athletes)
        preset_groups = ensure_week(db, coach=coach, group=group, exercises=exercises)
        db.commit()

        principal = Principal(user_id=coach.id, role=UserRole.COACH, coach_id=coach.coach.id)
        for preset_group in preset_groups:
            assign_preset_group(db, principal, preset_group.id)

        print("Seed data ready. Bearer tokens:")
        for user in [coach, *athletes]:
            token = create_access_token({"sub": user.external_id, "role": user.role.value, "name": user.name})
            print(f"  {user.external_id}: {token}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
