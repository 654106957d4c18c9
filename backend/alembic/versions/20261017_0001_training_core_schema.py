"""training core schema

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


dependencies: Union[str, Sequence[str], None] = None
revision = "20261017_0001"
down_revision = None
branch_labels: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_external_id", "users", ["external_id"], unique=True)

    op.create_table(
        "coaches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("speciality", sa.String(length=120), nullable=True),
    )

    op.create_table(
        "athlete_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("group_name", sa.String(length=120), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_athlete_groups_coach_id", "athlete_groups", ["coach_id"], unique=False)

    op.create_table(
        "athletes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column(
            "athlete_group_id",
            sa.Integer(),
            sa.ForeignKey("athlete_groups.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("height_cm", sa.Float(), nullable=True),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("training_goals", sa.Text(), nullable=True),
        sa.Column("experience", sa.String(length=80), nullable=True),
        sa.Column("events", sa.JSON(), nullable=False),
    )
    op.create_index("ix_athletes_athlete_group_id", "athletes", ["athlete_group_id"], unique=False)

    op.create_table(
        "athlete_group_histories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index(
        "ix_athlete_group_histories_athlete_id", "athlete_group_histories", ["athlete_id"], unique=False
    )

    op.create_table(
        "exercise_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=80), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_table(
        "units",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=40), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=80), nullable=False, unique=True),
    )
    op.create_table(
        "exercises",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "exercise_type_id",
            sa.Integer(),
            sa.ForeignKey("exercise_types.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("unit_id", sa.Integer(), sa.ForeignKey("units.id", ondelete="SET NULL"), nullable=True),
        sa.Column("video_url", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_exercises_name", "exercises", ["name"], unique=False)
    op.create_table(
        "exercise_tags",
        sa.Column("exercise_id", sa.Integer(), sa.ForeignKey("exercises.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "macrocycles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "athlete_group_id",
            sa.Integer(),
            sa.ForeignKey("athlete_groups.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_macrocycles_coach_id", "macrocycles", ["coach_id"], unique=False)

    op.create_table(
        "mesocycles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "macrocycle_id", sa.Integer(), sa.ForeignKey("macrocycles.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_mesocycles_macrocycle_id", "mesocycles", ["macrocycle_id"], unique=False)
    op.create_index("ix_mesocycles_coach_id", "mesocycles", ["coach_id"], unique=False)

    op.create_table(
        "microcycles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "mesocycle_id", sa.Integer(), sa.ForeignKey("mesocycles.id", ondelete="CASCADE"), nullable=True
        ),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("week_index", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_microcycles_mesocycle_id", "microcycles", ["mesocycle_id"], unique=False)
    op.create_index("ix_microcycles_coach_id", "microcycles", ["coach_id"], unique=False)

    op.create_table(
        "exercise_preset_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "microcycle_id", sa.Integer(), sa.ForeignKey("microcycles.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("week", sa.Integer(), nullable=True),
        sa.Column("day", sa.Integer(), nullable=True),
        sa.Column("session_mode", sa.String(length=20), nullable=False, server_default="individual"),
        sa.Column(
            "athlete_group_id",
            sa.Integer(),
            sa.ForeignKey("athlete_groups.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_exercise_preset_groups_coach_id", "exercise_preset_groups", ["coach_id"], unique=False)
    op.create_index(
        "ix_exercise_preset_groups_microcycle_id", "exercise_preset_groups", ["microcycle_id"], unique=False
    )

    op.create_table(
        "exercise_presets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "exercise_preset_group_id",
            sa.Integer(),
            sa.ForeignKey("exercise_preset_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exercise_id", sa.Integer(), sa.ForeignKey("exercises.id"), nullable=False),
        sa.Column("preset_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("superset_id", sa.String(length=40), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index(
        "ix_exercise_presets_exercise_preset_group_id", "exercise_presets", ["exercise_preset_group_id"], unique=False
    )

    op.create_table(
        "exercise_preset_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "exercise_preset_id",
            sa.Integer(),
            sa.ForeignKey("exercise_presets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("set_index", sa.Integer(), nullable=False),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("resistance", sa.Float(), nullable=True),
        sa.Column("resistance_unit_id", sa.Integer(), sa.ForeignKey("units.id", ondelete="SET NULL"), nullable=True),
        sa.Column("distance", sa.Float(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("tempo", sa.String(length=20), nullable=True),
        sa.Column("power", sa.Float(), nullable=True),
        sa.Column("velocity", sa.Float(), nullable=True),
        sa.Column("rest_time", sa.Integer(), nullable=True),
        sa.UniqueConstraint("exercise_preset_id", "set_index", name="preset_detail_set_unique"),
    )
    op.create_index(
        "ix_exercise_preset_details_exercise_preset_id", "exercise_preset_details", ["exercise_preset_id"], unique=False
    )

    op.create_table(
        "exercise_training_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "athlete_group_id",
            sa.Integer(),
            sa.ForeignKey("athlete_groups.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "exercise_preset_group_id",
            sa.Integer(),
            sa.ForeignKey("exercise_preset_groups.id"),
            nullable=False,
        ),
        sa.Column("session_mode", sa.String(length=20), nullable=False, server_default="individual"),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint(
            "athlete_id", "exercise_preset_group_id", name="training_session_athlete_group_unique"
        ),
    )
    op.create_index(
        "ix_exercise_training_sessions_athlete_id", "exercise_training_sessions", ["athlete_id"], unique=False
    )
    op.create_index(
        "ix_exercise_training_sessions_exercise_preset_group_id",
        "exercise_training_sessions",
        ["exercise_preset_group_id"],
        unique=False,
    )

    op.create_table(
        "exercise_training_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "exercise_training_session_id",
            sa.Integer(),
            sa.ForeignKey("exercise_training_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "exercise_preset_id",
            sa.Integer(),
            sa.ForeignKey("exercise_presets.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("set_index", sa.Integer(), nullable=False),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("resistance", sa.Float(), nullable=True),
        sa.Column("resistance_unit_id", sa.Integer(), sa.ForeignKey("units.id", ondelete="SET NULL"), nullable=True),
        sa.Column("distance", sa.Float(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("tempo", sa.String(length=20), nullable=True),
        sa.Column("power", sa.Float(), nullable=True),
        sa.Column("velocity", sa.Float(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint(
            "exercise_training_session_id",
            "exercise_preset_id",
            "set_index",
            name="training_detail_set_unique",
        ),
    )
    op.create_index(
        "ix_exercise_training_details_exercise_training_session_id",
        "exercise_training_details",
        ["exercise_training_session_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_exercise_training_details_exercise_training_session_id", table_name="exercise_training_details"
    )
    op.drop_table("exercise_training_details")
    op.drop_index(
        "ix_exercise_training_sessions_exercise_preset_group_id", table_name="exercise_training_sessions"
    )
    op.drop_index("ix_exercise_training_sessions_athlete_id", table_name="exercise_training_sessions")
    op.drop_table("exercise_training_sessions")
    op.drop_index("ix_exercise_preset_details_exercise_preset_id", table_name="exercise_preset_details")
    op.drop_table("exercise_preset_details")
    op.drop_index("ix_exercise_presets_exercise_preset_group_id", table_name="exercise_presets")
    op.drop_table("exercise_presets")
    op.drop_index("ix_exercise_preset_groups_microcycle_id", table_name="exercise_preset_groups")
    op.drop_index("ix_exercise_preset_groups_coach_id", table_name="exercise_preset_groups")
    op.drop_table("exercise_preset_groups")
    op.drop_index("ix_microcycles_coach_id", table_name="microcycles")
    op.drop_index("ix_microcycles_mesocycle_id", table_name="microcycles")
    op.drop_table("microcycles")
    op.drop_index("ix_mesocycles_coach_id", table_name="mesocycles")
    op.drop_index("ix_mesocycles_macrocycle_id", table_name="mesocycles")
    op.drop_table("mesocycles")
    op.drop_index("ix_macrocycles_coach_id", table_name="macrocycles")
    op.drop_table("macrocycles")
    op.drop_table("exercise_tags")
    op.drop_index("ix_exercises_name", table_name="exercises")
    op.drop_table("exercises")
    op.drop_table("tags")
    op.drop_table("units")
    op.drop_table("exercise_types")
    op.drop_index("ix_athlete_group_histories_athlete_id", table_name="athlete_group_histories")
    op.drop_table("athlete_group_histories")
    op.drop_index("ix_athletes_athlete_group_id", table_name="athletes")
    op.drop_table("athletes")
    op.drop_index("ix_athlete_groups_coach_id", table_name="athlete_groups")
    op.drop_table("athlete_groups")
    op.drop_table("coaches")
    op.drop_index("ix_users_external_id", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
