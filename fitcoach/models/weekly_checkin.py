# fitcoach/models/weekly_checkin.py
from fitcoach.extensions import db
from fitcoach.models._ids import new_id
from fitcoach.utils import clock


class WeeklyCheckin(db.Model):
    __tablename__ = "weekly_checkins"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    week_start = db.Column(db.Date, nullable=False)

    workout_adherence = db.Column(db.String(10), nullable=False)  # yes | partial | no
    meal_adherence = db.Column(db.String(10), nullable=False)
    budget_adherence = db.Column(db.String(10), nullable=False)
    primary_reason = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # newer rows supersede older ones for policy purposes; older rows stay for history
    adjustment_applied = db.Column(db.Boolean, nullable=False, default=False)
    adjustment_details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_weekly_checkins_user_created", "user_id", "created_at"),
    )

    def ratings(self):
        return {
            "workout": self.workout_adherence,
            "meal": self.meal_adherence,
            "budget": self.budget_adherence,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "weekStart": self.week_start.isoformat(),
            "workoutAdherence": self.workout_adherence,
            "mealAdherence": self.meal_adherence,
            "budgetAdherence": self.budget_adherence,
            "primaryReason": self.primary_reason,
            "notes": self.notes,
            "adjustmentApplied": bool(self.adjustment_applied),
            "adjustmentDetails": self.adjustment_details,
            "createdAt": self.created_at.isoformat(),
        }
