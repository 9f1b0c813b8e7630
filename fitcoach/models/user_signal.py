from fitcoach.extensions import db
from fitcoach.models._ids import new_id
from fitcoach.utils import clock


class UserSignal(db.Model):
    __tablename__ = "user_signals"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    signal_type = db.Column(db.String(40), nullable=False)
    payload = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)
