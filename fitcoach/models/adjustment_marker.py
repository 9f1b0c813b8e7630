from fitcoach.extensions import db


class AdjustmentMarker(db.Model):
    """
    Per-user pointer to the last applied adjustment.

    ``version`` is SQLAlchemy's version counter: an UPDATE issued against a
    row another transaction already bumped raises StaleDataError, and two
    racing first inserts collide on the primary key.
    """
    __tablename__ = "adjustment_markers"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    version = db.Column(db.Integer, nullable=False)

    last_adjusted_at = db.Column(db.DateTime, nullable=True)
    last_adjustment_id = db.Column(db.String(36), db.ForeignKey("adjustment_history.id"), nullable=True)

    last_adjustment = db.relationship("AdjustmentHistory")

    __mapper_args__ = {"version_id_col": version}
