from fitcoach.extensions import db
from fitcoach.models._ids import new_id
from fitcoach.utils import clock


class AdjustmentHistory(db.Model):
    __tablename__ = "adjustment_history"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    adjustment_type = db.Column(db.String(64), nullable=False)
    rule_applied = db.Column(db.String(64), nullable=False)
    reason = db.Column(db.Text, nullable=True)
    before_state = db.Column(db.JSON, nullable=True)
    after_state = db.Column(db.JSON, nullable=True)
    triggered_by = db.Column(db.String(32), nullable=True)  # deviation | weekly_checkin
    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "adjustmentType": self.adjustment_type,
            "rule": self.rule_applied,
            "reason": self.reason,
            "before": self.before_state,
            "after": self.after_state,
            "triggeredBy": self.triggered_by,
            "createdAt": self.created_at.isoformat(),
        }
