# fitcoach/adherence/regeneration.py
"""
Manual plan regeneration requests.

The plan itself is produced by the external generator; this records the
request against the weekly limit together with the constraints it should use.
Whether a regeneration also restarts the deviation count is the
REGENERATION_RESETS_WINDOW setting, applied by the aggregator.
"""
import logging

from fitcoach.adherence.constraints_store import get_constraints
from fitcoach.adherence.enums import TriggerSource
from fitcoach.adherence.tiers import get_tier, regeneration_limits
from fitcoach.errors import QuotaExceeded
from fitcoach.extensions import db, user_lock
from fitcoach.models import PlanRegeneration
from fitcoach.utils import clock
from fitcoach.utils.retry import run_in_transaction

logger = logging.getLogger(__name__)


def request_regeneration(user_id, now=None) -> dict:
    now = now or clock.utcnow()

    def unit():
        tier = get_tier(user_id)
        limits = regeneration_limits(user_id, tier, now)
        if not limits["allowed"]:
            raise QuotaExceeded(
                f"Free plan allows {limits['limit']} regenerations per week. Upgrade for unlimited regenerations."
            )

        constraints = get_constraints(user_id)
        row = PlanRegeneration(
            user_id=user_id,
            triggered_by=TriggerSource.MANUAL.value,
            constraints_snapshot=constraints.to_dict(),
            created_at=now,
        )
        db.session.add(row)
        db.session.flush()

        used = limits["used"] + 1
        return {
            "regeneration": {
                "id": row.id,
                "triggeredBy": row.triggered_by,
                "constraints": row.constraints_snapshot,
                "createdAt": now.isoformat(),
            },
            "tier": tier.value,
            "limits": {
                "regenerationsUsed": used,
                "regenerationsLimit": limits["limit"],
                "canRegenerate": limits["limit"] < 0 or used < limits["limit"],
            },
        }

    with user_lock.hold(user_id):
        result = run_in_transaction(unit)

    logger.info("Plan regeneration requested by user_id=%s (%s tier)", user_id, result["tier"])
    return result
