# fitcoach/adherence/summary.py
"""Summary Projector: the read-only home-screen view. Never writes."""
from fitcoach.adherence.aggregator import aggregate
from fitcoach.adherence.constraints_store import get_constraints
from fitcoach.adherence.enums import AdherenceLevel, DeviationType, SubscriptionTier
from fitcoach.adherence.policy import is_triggered, status_message
from fitcoach.adherence.state import AdherenceState, Constraints
from fitcoach.adherence.tiers import get_tier, regeneration_limits
from fitcoach.extensions import db
from fitcoach.models import User
from fitcoach.utils import clock


def budget_status(state: AdherenceState, constraints: Constraints) -> dict:
    exceeded = any(e.deviation_type is DeviationType.BUDGET_EXCEEDED for e in state.events)
    extra = round(state.extra_spend, 2)

    if exceeded or state.checkin_budget_rating == AdherenceLevel.NO.value:
        status = "over_budget"
    elif extra > 0 or state.checkin_budget_rating == AdherenceLevel.PARTIAL.value:
        status = "near_limit"
    else:
        status = "on_track"

    return {
        "weeklyBudget": constraints.weekly_food_budget,
        "extraSpend": extra,
        "status": status,
    }


def project(user_id, as_of=None) -> dict:
    as_of = as_of or clock.utcnow()
    constraints = get_constraints(user_id)
    tier = get_tier(user_id)
    state = aggregate(user_id, as_of=as_of, constraints=constraints)
    limits = regeneration_limits(user_id, tier, as_of)
    user = db.session.get(User, user_id)

    return {
        "user": {
            "name": (user.full_name if user and user.full_name else "User"),
            "tier": tier.value,
        },
        "planStatus": {
            "status": state.status.value,
            "deviationsThisWeek": state.deviation_count,
            "weightedSeverity": state.weighted_severity,
            "threshold": state.threshold,
            "message": status_message(state),
            "regenerationRecommended": tier is SubscriptionTier.FREE and is_triggered(state),
        },
        "budget": budget_status(state, constraints),
        "lastAdjustment": state.last_adjustment.to_dict() if state.last_adjustment else None,
        "limits": {
            "regenerationsUsed": limits["used"],
            "regenerationsLimit": limits["limit"],
            "canRegenerate": limits["allowed"],
        },
        "constraints": constraints.to_dict(),
    }
