# fitcoach/adherence/recorder.py
"""
Deviation Recorder.

Validates and appends one deviation, then runs the policy against the window
that now includes it, all in one transaction under the per-user lock.
"""
import logging
from datetime import timedelta

from fitcoach.adherence.aggregator import aggregate
from fitcoach.adherence.constraints_store import get_constraints
from fitcoach.adherence.enums import DeviationReason, DeviationType, TriggerSource
from fitcoach.adherence.policy import evaluate
from fitcoach.adherence.state import Outcome
from fitcoach.adherence.tiers import get_tier
from fitcoach.errors import ValidationError
from fitcoach.extensions import db, user_lock
from fitcoach.models import DeviationEvent
from fitcoach.models._ids import new_id
from fitcoach.services.signal_service import emit_signal
from fitcoach.utils import clock
from fitcoach.utils.retry import resolve_conflicts

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 2000
MAX_REFERENCE_LENGTH = 64
DINING_OUT_ESTIMATED_CALORIES = 200

# the evaluation instant sits just past the write so the new event is inside [start, as_of)
_JUST_AFTER = timedelta(microseconds=1)

_SIGNAL_FOR_TYPE = {
    DeviationType.SKIPPED_WORKOUT: "workout_skipped",
    DeviationType.MISSED_MEAL: "meal_skipped",
}


def _optional_text(value, field, max_length):
    if value is None:
        return None
    if not isinstance(value, str) or len(value) > max_length:
        raise ValidationError(f"{field} must be a string of at most {max_length} characters", fields=[field])
    value = value.strip()
    return value or None


def _optional_number(value, field, integer=False):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", fields=[field])
    if integer:
        if isinstance(value, float) and not value.is_integer():
            raise ValidationError(f"{field} must be a whole number", fields=[field])
        return int(value)
    return float(value)


def validate_deviation(deviation_type, reason, related_workout_id=None, related_meal_id=None,
                       notes=None, impact=None, client_request_id=None) -> dict:
    bad = []
    try:
        dtype = DeviationType.parse(deviation_type, "deviationType")
    except ValidationError:
        bad.append("deviationType")
    try:
        dreason = DeviationReason.parse(reason, "reason")
    except ValidationError:
        bad.append("reason")
    if bad:
        raise ValidationError(f"Invalid values for: {bad}", fields=bad)

    impact = impact or {}
    if not isinstance(impact, dict):
        raise ValidationError("impact must be an object", fields=["impact"])

    return {
        "deviation_type": dtype,
        "reason": dreason,
        "related_workout_id": _optional_text(related_workout_id, "relatedWorkoutId", MAX_REFERENCE_LENGTH),
        "related_meal_id": _optional_text(related_meal_id, "relatedMealId", MAX_REFERENCE_LENGTH),
        "notes": _optional_text(notes, "notes", MAX_NOTES_LENGTH),
        "impact_calories": _optional_number(impact.get("calories"), "impactCalories", integer=True),
        "impact_protein": _optional_number(impact.get("protein"), "impactProtein"),
        "impact_budget": _optional_number(impact.get("budget"), "impactBudget"),
        "client_request_id": _optional_text(client_request_id, "clientRequestId", MAX_REFERENCE_LENGTH),
    }


def project_impact(event: DeviationEvent) -> dict:
    """Immediate nutritional/budget effect of one event. Stored values are left as given."""
    calories, estimated = event.impact_calories, False
    if calories is None and event.deviation_type == DeviationType.DINING_OUT.value:
        calories, estimated = DINING_OUT_ESTIMATED_CALORIES, True
    return {
        "calories": calories,
        "protein": event.impact_protein,
        "budget": event.impact_budget,
        "estimated": estimated,
    }


def _check_pairing(user_id, fields):
    pairs_with = fields["deviation_type"].pairs_with
    if pairs_with == "workout" and fields["related_meal_id"] and not fields["related_workout_id"]:
        logger.info("Deviation %s for user_id=%s references a meal, logging as given",
                    fields["deviation_type"].value, user_id)
    elif pairs_with == "meal" and fields["related_workout_id"] and not fields["related_meal_id"]:
        logger.info("Deviation %s for user_id=%s references a workout, logging as given",
                    fields["deviation_type"].value, user_id)


def _find_replay(user_id, client_request_id):
    if not client_request_id:
        return None
    return DeviationEvent.query.filter_by(user_id=user_id, client_request_id=client_request_id).first()


def record_deviation(user_id, deviation_type, reason, related_workout_id=None, related_meal_id=None,
                     notes=None, impact=None, client_request_id=None, now=None) -> Outcome:
    fields = validate_deviation(deviation_type, reason, related_workout_id, related_meal_id,
                                notes, impact, client_request_id)
    _check_pairing(user_id, fields)
    now = now or clock.utcnow()

    def unit(allow_adjustment):
        event = _find_replay(user_id, fields["client_request_id"])
        replayed = event is not None
        if not replayed:
            event = DeviationEvent(
                id=new_id(),
                user_id=user_id,
                deviation_type=fields["deviation_type"].value,
                reason=fields["reason"].value,
                related_workout_id=fields["related_workout_id"],
                related_meal_id=fields["related_meal_id"],
                notes=fields["notes"],
                impact_calories=fields["impact_calories"],
                impact_protein=fields["impact_protein"],
                impact_budget=fields["impact_budget"],
                client_request_id=fields["client_request_id"],
                created_at=now,
            )
            db.session.add(event)
            db.session.flush()

        constraints = get_constraints(user_id)
        tier = get_tier(user_id)
        state = aggregate(user_id, as_of=max(now, event.created_at) + _JUST_AFTER, constraints=constraints)
        result = evaluate(user_id, tier, state, constraints, TriggerSource.DEVIATION,
                          now=now, allow_adjustment=allow_adjustment)

        return Outcome(
            record_key="deviation",
            record=event.to_dict(),
            tier=tier.value,
            result=result,
            message=f"Deviation logged. {result.message}",
            extra={"impact": project_impact(event)},
            replayed=replayed,
        )

    with user_lock.hold(user_id):
        outcome = resolve_conflicts(unit, user_id)

    if outcome.replayed:
        logger.info("Replayed deviation %s for user_id=%s", outcome.record["id"], user_id)
    else:
        logger.info("Deviation recorded for user_id=%s: %s (%s)",
                    user_id, fields["deviation_type"].value, fields["reason"].value)
        signal = _SIGNAL_FOR_TYPE.get(fields["deviation_type"])
        if signal:
            emit_signal(user_id, signal, {"deviationId": outcome.record["id"]})
    return outcome
