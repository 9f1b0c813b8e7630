# fitcoach/adherence/checkin.py
"""
Check-in Processor.

A weekly self-report rated yes / partial / no on three axes. The row is kept
whatever the policy decides; the newest check-in in the window is the one the
aggregator converts into deviation-equivalents, and the decision itself goes
through the same policy as discrete deviations.
"""
import logging
from datetime import timedelta

from fitcoach.adherence.aggregator import aggregate
from fitcoach.adherence.constraints_store import get_constraints
from fitcoach.adherence.enums import AdherenceLevel, DeviationReason, TriggerSource
from fitcoach.adherence.policy import evaluate
from fitcoach.adherence.state import Outcome
from fitcoach.adherence.tiers import get_tier
from fitcoach.errors import ValidationError
from fitcoach.extensions import db, user_lock
from fitcoach.models import WeeklyCheckin
from fitcoach.models._ids import new_id
from fitcoach.services.signal_service import emit_signal
from fitcoach.utils import clock
from fitcoach.utils.retry import resolve_conflicts

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 2000
_JUST_AFTER = timedelta(microseconds=1)


def validate_checkin(workout_adherence, meal_adherence, budget_adherence,
                     primary_reason=None, notes=None) -> dict:
    ratings, bad = {}, []
    for field, raw in (("workoutAdherence", workout_adherence),
                       ("mealAdherence", meal_adherence),
                       ("budgetAdherence", budget_adherence)):
        try:
            ratings[field] = AdherenceLevel.parse(raw, field)
        except ValidationError:
            bad.append(field)

    reason = None
    if primary_reason is not None:
        try:
            reason = DeviationReason.parse(primary_reason, "primaryReason")
        except ValidationError:
            bad.append("primaryReason")

    if notes is not None and (not isinstance(notes, str) or len(notes) > MAX_NOTES_LENGTH):
        bad.append("notes")

    if bad:
        raise ValidationError(f"Invalid values for: {bad}", fields=bad)

    return {
        "workout_adherence": ratings["workoutAdherence"],
        "meal_adherence": ratings["mealAdherence"],
        "budget_adherence": ratings["budgetAdherence"],
        "primary_reason": reason,
        "notes": (notes or "").strip() or None,
    }


def _message(result):
    if result.adjustments_applied:
        return "Check-in saved and plans adjusted automatically."
    if result.regeneration_recommended:
        return "Check-in saved. Regenerate plans manually to apply changes."
    return f"Check-in saved. {result.message}"


def submit_checkin(user_id, workout_adherence, meal_adherence, budget_adherence,
                   primary_reason=None, notes=None, now=None) -> Outcome:
    fields = validate_checkin(workout_adherence, meal_adherence, budget_adherence, primary_reason, notes)
    now = now or clock.utcnow()

    def unit(allow_adjustment):
        checkin = WeeklyCheckin(
            id=new_id(),
            user_id=user_id,
            week_start=clock.week_start(now),
            workout_adherence=fields["workout_adherence"].value,
            meal_adherence=fields["meal_adherence"].value,
            budget_adherence=fields["budget_adherence"].value,
            primary_reason=fields["primary_reason"].value if fields["primary_reason"] else None,
            notes=fields["notes"],
            created_at=now,
        )
        db.session.add(checkin)
        db.session.flush()

        constraints = get_constraints(user_id)
        tier = get_tier(user_id)
        state = aggregate(user_id, as_of=now + _JUST_AFTER, constraints=constraints)
        result = evaluate(user_id, tier, state, constraints, TriggerSource.WEEKLY_CHECKIN,
                          now=now, allow_adjustment=allow_adjustment)

        if result.adjustments_applied:
            checkin.adjustment_applied = True
            checkin.adjustment_details = result.to_dict()

        return Outcome(
            record_key="checkin",
            record=checkin.to_dict(),
            tier=tier.value,
            result=result,
            message=_message(result),
        )

    with user_lock.hold(user_id):
        outcome = resolve_conflicts(unit, user_id)

    logger.info("Check-in saved for user_id=%s (workout=%s meal=%s budget=%s, adjustments=%s)",
                user_id, fields["workout_adherence"].value, fields["meal_adherence"].value,
                fields["budget_adherence"].value, outcome.result.adjustments_applied)

    emit_signal(user_id, "checkin_submitted", {
        "workoutAdherence": fields["workout_adherence"].value,
        "mealAdherence": fields["meal_adherence"].value,
        "budgetAdherence": fields["budget_adherence"].value,
        "primaryReason": fields["primary_reason"].value if fields["primary_reason"] else None,
    })
    return outcome
