# fitcoach/adherence/state.py
"""Value types passed between the aggregator, the policy and the entry points."""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from fitcoach.adherence.enums import DeviationReason, DeviationType, PlanStatus, TriggerSource


@dataclass(frozen=True)
class Constraints:
    workouts_per_week: int = 3
    workout_duration_minutes: int = 45
    equipment_access: Tuple[str, ...] = ("bodyweight",)
    preferred_workout_days: Tuple[int, ...] = (1, 3, 5)
    weekly_food_budget: float = 100.0
    meals_per_day: int = 3
    max_cooking_time_minutes: int = 30
    protein_target_grams: Optional[int] = None
    simplify_after_deviations: int = 3
    prefer_simple_meals: bool = False
    prefer_budget_meals: bool = False

    def to_dict(self):
        data = asdict(self)
        data["equipment_access"] = list(self.equipment_access)
        data["preferred_workout_days"] = list(self.preferred_workout_days)
        return data


@dataclass(frozen=True)
class WindowEvent:
    """One deviation, logged or synthesized from a check-in, inside the window."""
    deviation_type: DeviationType
    reason: DeviationReason
    created_at: datetime
    source: str = "deviation"  # deviation | checkin
    impact_budget: Optional[float] = None


@dataclass(frozen=True)
class LastAdjustment:
    id: str
    adjustment_type: str
    rule: str
    reason: Optional[str]
    created_at: datetime
    triggered_by: Optional[str]

    def to_dict(self):
        return {
            "type": self.adjustment_type,
            "reason": self.rule,
            "date": self.created_at.isoformat(),
            "triggeredBy": self.triggered_by,
        }


@dataclass(frozen=True)
class AdherenceState:
    user_id: int
    as_of: datetime
    window_start: datetime
    threshold: int
    status: PlanStatus
    deviation_count: int
    weighted_severity: float
    events: Tuple[WindowEvent, ...] = ()
    partial_axes: Tuple[str, ...] = ()
    checkin_budget_rating: Optional[str] = None
    last_adjustment: Optional[LastAdjustment] = None
    adjusted_in_window: bool = False

    @property
    def logged_count(self) -> int:
        return sum(1 for e in self.events if e.source == "deviation")

    @property
    def extra_spend(self) -> float:
        return float(sum(e.impact_budget or 0 for e in self.events))


@dataclass(frozen=True)
class AdjustmentDescriptor:
    adjustment_type: str
    rule: str
    category: str
    description: str
    before: dict = field(default_factory=dict)
    after: dict = field(default_factory=dict)

    def to_dict(self):
        return {
            "adjustmentType": self.adjustment_type,
            "rule": self.rule,
            "category": self.category,
            "description": self.description,
            "before": self.before,
            "after": self.after,
        }


@dataclass
class AdjustmentResult:
    status: PlanStatus
    message: str
    triggered: bool = False
    adjustments: List[AdjustmentDescriptor] = field(default_factory=list)
    regeneration_recommended: bool = False
    last_adjustment: Optional[LastAdjustment] = None
    triggered_by: Optional[TriggerSource] = None

    @property
    def adjustments_applied(self) -> int:
        return len(self.adjustments)

    def to_dict(self):
        return {
            "adjustmentsApplied": self.adjustments_applied,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "message": self.message,
            "status": self.status.value,
            "triggered": self.triggered,
            "regenerationRecommended": self.regeneration_recommended,
            "requiresRegeneration": self.adjustments_applied > 0,
            "lastAdjustment": self.last_adjustment.to_dict() if self.last_adjustment else None,
        }


@dataclass
class Outcome:
    """Response of an entry point: the stored record, the tier and the policy verdict."""
    record_key: str
    record: dict
    tier: str
    result: AdjustmentResult
    message: str
    extra: dict = field(default_factory=dict)
    replayed: bool = False

    def to_dict(self):
        body = {
            self.record_key: self.record,
            "tier": self.tier,
            "adjustmentResult": self.result.to_dict(),
            "message": self.message,
        }
        body.update(self.extra)
        return body
