# fitcoach/services/signal_service.py
"""
Best-effort behavioural signals (check-in submitted, workout skipped, ...).

``emit_signal`` never raises: a failed signal is logged and dropped, and the
request that produced it is not affected.
"""
import logging
import threading

from flask import current_app

from fitcoach.errors import ValidationError
from fitcoach.extensions import db
from fitcoach.models import UserSignal
from fitcoach.utils import clock

logger = logging.getLogger(__name__)

ALLOWED_SIGNAL_TYPES = (
    "meal_completed",
    "meal_skipped",
    "meal_swapped",
    "workout_completed",
    "workout_skipped",
    "food_scanned",
    "coach_message",
    "water_logged",
    "checkin_submitted",
)


def _clean_payload(payload):
    return payload if isinstance(payload, dict) else {}


def record_signal(user_id, signal_type, payload=None) -> UserSignal:
    """Validated, synchronous insert used by the signals endpoint."""
    if not signal_type or not isinstance(signal_type, str):
        raise ValidationError("signal_type is required and must be a string", fields=["signal_type"])
    if signal_type not in ALLOWED_SIGNAL_TYPES:
        raise ValidationError(
            f"signal_type must be one of: {', '.join(ALLOWED_SIGNAL_TYPES)}", fields=["signal_type"]
        )

    signal = UserSignal(
        user_id=user_id,
        signal_type=signal_type,
        payload=_clean_payload(payload),
        created_at=clock.utcnow(),
    )
    db.session.add(signal)
    return signal


def _deliver(user_id, signal_type, payload):
    try:
        record_signal(user_id, signal_type, payload)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Failed to log signal %s for user_id=%s", signal_type, user_id)


def _deliver_in_context(app, user_id, signal_type, payload):
    with app.app_context():
        _deliver(user_id, signal_type, payload)
        db.session.remove()


def emit_signal(user_id, signal_type, payload=None):
    """Fire-and-forget. Runs on a daemon thread unless SIGNALS_ASYNC is off."""
    try:
        app = current_app._get_current_object()
        if not app.config.get("SIGNALS_ASYNC", True):
            _deliver(user_id, signal_type, payload)
            return None

        thread = threading.Thread(
            target=_deliver_in_context,
            args=(app, user_id, signal_type, dict(_clean_payload(payload))),
            name=f"fitcoach-signal-u{user_id}",
            daemon=True,
        )
        thread.start()
        return thread
    except Exception:
        logger.exception("Could not dispatch signal %s for user_id=%s", signal_type, user_id)
        return None
