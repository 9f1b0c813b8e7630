# fitcoach/adherence/tiers.py
from datetime import datetime, time

from flask import current_app

from fitcoach.adherence.enums import SubscriptionTier, TriggerSource
from fitcoach.models import PlanRegeneration, UserSubscription
from fitcoach.utils import clock

UNLIMITED = -1


def get_tier(user_id) -> SubscriptionTier:
    sub = UserSubscription.query.filter_by(user_id=user_id).first()
    if sub is None or not sub.tier:
        return SubscriptionTier.FREE
    return SubscriptionTier.parse(sub.tier)


def regeneration_limits(user_id, tier: SubscriptionTier, as_of: datetime = None) -> dict:
    """Manual regenerations used in the current (Monday-based) week against the tier limit."""
    as_of = as_of or clock.utcnow()
    since = datetime.combine(clock.week_start(as_of), time.min)

    used = (
        PlanRegeneration.query
        .filter(PlanRegeneration.user_id == user_id,
                PlanRegeneration.triggered_by == TriggerSource.MANUAL.value,
                PlanRegeneration.created_at >= since,
                PlanRegeneration.created_at <= as_of)
        .count()
    )

    if tier is SubscriptionTier.PAID:
        return {"used": used, "limit": UNLIMITED, "allowed": True}

    limit = int(current_app.config.get("FREE_REGENERATION_LIMIT", 3))
    return {"used": used, "limit": limit, "allowed": used < limit}
