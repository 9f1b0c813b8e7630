from fitcoach.extensions import db
from fitcoach.models._ids import new_id
from fitcoach.utils import clock


class PlanRegeneration(db.Model):
    __tablename__ = "plan_regenerations"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    triggered_by = db.Column(db.String(32), nullable=False, default="manual")
    constraints_snapshot = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_plan_regenerations_user_created", "user_id", "created_at"),
    )
