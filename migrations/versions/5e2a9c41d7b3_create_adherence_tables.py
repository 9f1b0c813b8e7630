"""create adherence tables

Revision ID: 5e2a9c41d7b3
Revises:
Create Date: 2026-10-19 10:12:44.018311
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5e2a9c41d7b3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=160), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("tier", sa.String(length=20), nullable=False),        # free | paid
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "user_constraints",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("workouts_per_week", sa.Integer(), nullable=False),
        sa.Column("workout_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("equipment_access", sa.JSON(), nullable=False),
        sa.Column("preferred_workout_days", sa.JSON(), nullable=False),
        sa.Column("weekly_food_budget", sa.Float(), nullable=False),
        sa.Column("meals_per_day", sa.Integer(), nullable=False),
        sa.Column("max_cooking_time_minutes", sa.Integer(), nullable=False),
        sa.Column("protein_target_grams", sa.Integer(), nullable=True),
        sa.Column("simplify_after_deviations", sa.Integer(), nullable=False),
        sa.Column("prefer_simple_meals", sa.Boolean(), nullable=False),
        sa.Column("prefer_budget_meals", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("simplify_after_deviations >= 1", name="ck_user_constraints_threshold"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "deviation_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("deviation_type", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.String(length=32), nullable=False),
        sa.Column("related_workout_id", sa.String(length=64), nullable=True),
        sa.Column("related_meal_id", sa.String(length=64), nullable=True),
        sa.Column("impact_calories", sa.Integer(), nullable=True),
        sa.Column("impact_protein", sa.Float(), nullable=True),
        sa.Column("impact_budget", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("client_request_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "client_request_id", name="uq_deviation_events_user_request"),
    )
    op.create_index("ix_deviation_events_user_created", "deviation_events", ["user_id", "created_at"])

    op.create_table(
        "weekly_checkins",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("workout_adherence", sa.String(length=10), nullable=False),  # yes | partial | no
        sa.Column("meal_adherence", sa.String(length=10), nullable=False),
        sa.Column("budget_adherence", sa.String(length=10), nullable=False),
        sa.Column("primary_reason", sa.String(length=32), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("adjustment_applied", sa.Boolean(), nullable=False),
        sa.Column("adjustment_details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_weekly_checkins_user_created", "weekly_checkins", ["user_id", "created_at"])

    op.create_table(
        "adjustment_history",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("adjustment_type", sa.String(length=64), nullable=False),
        sa.Column("rule_applied", sa.String(length=64), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        sa.Column("triggered_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_adjustment_history_user_id", "adjustment_history", ["user_id"])

    op.create_table(
        "adjustment_markers",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("last_adjusted_at", sa.DateTime(), nullable=True),
        sa.Column("last_adjustment_id", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["last_adjustment_id"], ["adjustment_history.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "plan_regenerations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("triggered_by", sa.String(length=32), nullable=False),
        sa.Column("constraints_snapshot", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_plan_regenerations_user_created", "plan_regenerations", ["user_id", "created_at"])

    op.create_table(
        "user_signals",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("signal_type", sa.String(length=40), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_signals_user_id", "user_signals", ["user_id"])


def downgrade():
    op.drop_index("ix_user_signals_user_id", table_name="user_signals")
    op.drop_table("user_signals")
    op.drop_index("ix_plan_regenerations_user_created", table_name="plan_regenerations")
    op.drop_table("plan_regenerations")
    op.drop_table("adjustment_markers")
    op.drop_index("ix_adjustment_history_user_id", table_name="adjustment_history")
    op.drop_table("adjustment_history")
    op.drop_index("ix_weekly_checkins_user_created", table_name="weekly_checkins")
    op.drop_table("weekly_checkins")
    op.drop_index("ix_deviation_events_user_created", table_name="deviation_events")
    op.drop_table("deviation_events")
    op.drop_table("user_constraints")
    op.drop_table("user_subscriptions")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
