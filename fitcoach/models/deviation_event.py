from fitcoach.extensions import db
from fitcoach.models._ids import new_id
from fitcoach.utils import clock


class DeviationEvent(db.Model):
    """Append-only log of departures from the plan. Rows are never updated."""
    __tablename__ = "deviation_events"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    deviation_type = db.Column(db.String(32), nullable=False)
    reason = db.Column(db.String(32), nullable=False)
    related_workout_id = db.Column(db.String(64), nullable=True)
    related_meal_id = db.Column(db.String(64), nullable=True)

    impact_calories = db.Column(db.Integer, nullable=True)
    impact_protein = db.Column(db.Float, nullable=True)
    impact_budget = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    client_request_id = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("user_id", "client_request_id", name="uq_deviation_events_user_request"),
        db.Index("ix_deviation_events_user_created", "user_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "deviationType": self.deviation_type,
            "reason": self.reason,
            "relatedWorkoutId": self.related_workout_id,
            "relatedMealId": self.related_meal_id,
            "impactCalories": self.impact_calories,
            "impactProtein": self.impact_protein,
            "impactBudget": self.impact_budget,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat(),
        }
