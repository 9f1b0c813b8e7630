from fitcoach.extensions import db
from fitcoach.utils import clock


class User(db.Model):
    """Identity mirror of the external auth service; the JWT subject is ``id``."""
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email = db.Column(db.String(255), unique=True, index=True, nullable=True)
    full_name = db.Column(db.String(160), nullable=True)
    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)

    subscription = db.relationship(
        "UserSubscription", uselist=False, back_populates="user", cascade="all,delete-orphan"
    )
