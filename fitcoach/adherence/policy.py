# fitcoach/adherence/policy.py
"""
Tiered Adjustment Policy.

Detection is the same for every tier: an adjustment is triggered when the
window is at or over the user's threshold and no adjustment has been applied
inside the trailing window yet. The tier only decides what happens next:
``paid`` users get one simplification applied on the spot, ``free`` users get
a recommendation to regenerate manually. This module is the only place that
gate lives.
"""
import logging
from datetime import datetime

from fitcoach.adherence.aggregator import last_adjustment_for
from fitcoach.adherence.constraints_store import save_constraints
from fitcoach.adherence.enums import PlanStatus, SubscriptionTier, TriggerSource
from fitcoach.adherence.state import (
    AdherenceState, AdjustmentDescriptor, AdjustmentResult, Constraints, LastAdjustment,
)
from fitcoach.adherence.strategies import select_strategy
from fitcoach.extensions import db
from fitcoach.models import AdjustmentHistory, AdjustmentMarker
from fitcoach.models._ids import new_id
from fitcoach.utils import clock

logger = logging.getLogger(__name__)

FREE_TIER_MESSAGE = (
    "Multiple deviations detected. Regenerate your plan to get a simpler version "
    "that fits your week."
)
ALREADY_ADJUSTED_MESSAGE = (
    "Your plan was already adjusted for this stretch. Keep logging and it will be "
    "re-evaluated once the current week rolls over."
)


def status_message(state: AdherenceState) -> str:
    status, count = state.status, state.deviation_count
    if status is PlanStatus.ON_TRACK:
        message = "You're doing great! Keep it up."
    elif status is PlanStatus.MINOR_DEVIATIONS:
        plural = "s" if count > 1 else ""
        message = f"{count} deviation{plural} this week. No worries, stay flexible."
    elif status is PlanStatus.NEEDS_REVIEW:
        message = "Multiple deviations detected. Consider reviewing your plan."
    else:
        message = "Your plan was recently adjusted based on your progress."

    if (state.partial_axes and status in (PlanStatus.ON_TRACK, PlanStatus.MINOR_DEVIATIONS)
            and state.weighted_severity >= state.threshold):
        axes = ", ".join(state.partial_axes)
        message += f" Partial weeks ({axes}) are adding up, so watch those next."
    return message


def is_triggered(state: AdherenceState) -> bool:
    return state.status is PlanStatus.NEEDS_REVIEW and not state.adjusted_in_window


def evaluate(user_id, tier: SubscriptionTier, state: AdherenceState, constraints: Constraints,
             triggered_by: TriggerSource = TriggerSource.DEVIATION, now: datetime = None,
             allow_adjustment: bool = True) -> AdjustmentResult:
    if not is_triggered(state):
        message = status_message(state)
        if state.status is PlanStatus.NEEDS_REVIEW:
            message = ALREADY_ADJUSTED_MESSAGE
        return AdjustmentResult(
            status=state.status,
            message=message,
            last_adjustment=state.last_adjustment,
            triggered_by=triggered_by,
        )

    if tier is not SubscriptionTier.PAID:
        logger.info("Adjustment recommended (not applied) for free user_id=%s: %s deviations, threshold %s",
                    user_id, state.deviation_count, state.threshold)
        return AdjustmentResult(
            status=state.status,
            message=FREE_TIER_MESSAGE,
            triggered=True,
            regeneration_recommended=True,
            last_adjustment=state.last_adjustment,
            triggered_by=triggered_by,
        )

    if not allow_adjustment:
        return _defer_to_current(user_id, state, triggered_by)

    return _apply(user_id, state, constraints, triggered_by, now or clock.utcnow())


def _defer_to_current(user_id, state, triggered_by) -> AdjustmentResult:
    current = last_adjustment_for(user_id)
    if current is None or current.created_at < state.window_start:
        return AdjustmentResult(
            status=state.status,
            message=status_message(state),
            triggered=True,
            last_adjustment=current,
            triggered_by=triggered_by,
        )
    return AdjustmentResult(
        status=PlanStatus.RECENTLY_ADJUSTED,
        message=f"Your plan was just adjusted ({current.adjustment_type.replace('_', ' ')}).",
        triggered=True,
        last_adjustment=current,
        triggered_by=triggered_by,
    )


def _apply(user_id, state, constraints, triggered_by, now) -> AdjustmentResult:
    # the state may be stale; the marker row is what decides "already adjusted"
    marker = db.session.get(AdjustmentMarker, user_id)
    if marker is not None and marker.last_adjusted_at and marker.last_adjusted_at >= state.window_start:
        return _defer_to_current(user_id, state, triggered_by)

    strategy = select_strategy(state, constraints)
    updated, description = strategy.apply(constraints)
    save_constraints(user_id, updated)

    history = AdjustmentHistory(
        id=new_id(),
        user_id=user_id,
        adjustment_type=strategy.adjustment_type,
        rule_applied=strategy.name,
        reason=description,
        before_state=constraints.to_dict(),
        after_state=updated.to_dict(),
        triggered_by=triggered_by.value,
        created_at=now,
    )
    db.session.add(history)

    if marker is None:
        marker = AdjustmentMarker(user_id=user_id)
        db.session.add(marker)
    marker.last_adjusted_at = now
    marker.last_adjustment = history

    # surfaces version / first-insert races to run_in_transaction
    db.session.flush()

    logger.info("Adjustment applied for user_id=%s: %s (trigger=%s)",
                user_id, strategy.adjustment_type, triggered_by.value)

    descriptor = AdjustmentDescriptor(
        adjustment_type=strategy.adjustment_type,
        rule=strategy.name,
        category=strategy.category.value,
        description=description,
        before=constraints.to_dict(),
        after=updated.to_dict(),
    )
    return AdjustmentResult(
        status=PlanStatus.RECENTLY_ADJUSTED,
        message=f"Plan adjusted automatically. {description}.",
        triggered=True,
        adjustments=[descriptor],
        last_adjustment=LastAdjustment(
            id=history.id,
            adjustment_type=history.adjustment_type,
            rule=history.rule_applied,
            reason=history.reason,
            created_at=now,
            triggered_by=history.triggered_by,
        ),
        triggered_by=triggered_by,
    )
