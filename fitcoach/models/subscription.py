from fitcoach.extensions import db
from fitcoach.utils import clock


class UserSubscription(db.Model):
    __tablename__ = "user_subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    tier = db.Column(db.String(20), nullable=False, default="free")  # free | paid
    updated_at = db.Column(db.DateTime, default=clock.utcnow, onupdate=clock.utcnow, nullable=False)

    user = db.relationship("User", back_populates="subscription")
