from fitcoach.extensions import db
from fitcoach.utils import clock


class UserConstraints(db.Model):
    __tablename__ = "user_constraints"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # fitness
    workouts_per_week = db.Column(db.Integer, nullable=False, default=3)
    workout_duration_minutes = db.Column(db.Integer, nullable=False, default=45)
    equipment_access = db.Column(db.JSON, nullable=False, default=lambda: ["bodyweight"])
    preferred_workout_days = db.Column(db.JSON, nullable=False, default=lambda: [1, 3, 5])  # 0 = Sunday

    # nutrition
    weekly_food_budget = db.Column(db.Float, nullable=False, default=100.0)
    meals_per_day = db.Column(db.Integer, nullable=False, default=3)
    max_cooking_time_minutes = db.Column(db.Integer, nullable=False, default=30)
    protein_target_grams = db.Column(db.Integer, nullable=True)

    # policy
    simplify_after_deviations = db.Column(db.Integer, nullable=False, default=3)
    prefer_simple_meals = db.Column(db.Boolean, nullable=False, default=False)
    prefer_budget_meals = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=clock.utcnow, onupdate=clock.utcnow, nullable=False)
