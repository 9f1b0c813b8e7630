# fitcoach/adherence/enums.py
from enum import Enum

from fitcoach.errors import ValidationError


class _Choice(str, Enum):
    @classmethod
    def values(cls):
        return [m.value for m in cls]

    @classmethod
    def parse(cls, raw, field):
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(
                f"Invalid {field}: {raw!r}. Expected one of: {', '.join(cls.values())}",
                fields=[field],
            )


class DeviationType(_Choice):
    SKIPPED_WORKOUT = "skipped_workout"
    SHORTENED_WORKOUT = "shortened_workout"
    MISSED_MEAL = "missed_meal"
    SUBSTITUTED_MEAL = "substituted_meal"
    DINING_OUT = "dining_out"
    BUDGET_EXCEEDED = "budget_exceeded"

    @property
    def category(self) -> "Category":
        return _CATEGORY[self]

    @property
    def pairs_with(self):
        """Related reference a deviation of this type naturally carries."""
        if self.category is Category.WORKOUT:
            return "workout"
        if self in (DeviationType.MISSED_MEAL, DeviationType.SUBSTITUTED_MEAL, DeviationType.DINING_OUT):
            return "meal"
        return None


class DeviationReason(_Choice):
    TIME = "time"
    BUDGET = "budget"
    ENERGY = "energy"
    PREFERENCE = "preference"
    DINING_OUT = "dining_out"
    ILLNESS = "illness"
    OTHER = "other"


class AdherenceLevel(_Choice):
    YES = "yes"
    PARTIAL = "partial"
    NO = "no"


class PlanStatus(_Choice):
    ON_TRACK = "on_track"
    MINOR_DEVIATIONS = "minor_deviations"
    NEEDS_REVIEW = "needs_review"
    RECENTLY_ADJUSTED = "recently_adjusted"


class SubscriptionTier(_Choice):
    FREE = "free"
    PAID = "paid"

    @classmethod
    def parse(cls, raw, field="tier"):
        if isinstance(raw, str) and raw.lower() == "pro":
            return cls.PAID
        return super().parse(raw, field)


class TriggerSource(_Choice):
    DEVIATION = "deviation"
    WEEKLY_CHECKIN = "weekly_checkin"
    MANUAL = "manual"


class Category(_Choice):
    # declaration order is the strategy priority order
    WORKOUT = "workout"
    MEAL = "meal"
    BUDGET = "budget"


_CATEGORY = {
    DeviationType.SKIPPED_WORKOUT: Category.WORKOUT,
    DeviationType.SHORTENED_WORKOUT: Category.WORKOUT,
    DeviationType.MISSED_MEAL: Category.MEAL,
    DeviationType.SUBSTITUTED_MEAL: Category.MEAL,
    DeviationType.DINING_OUT: Category.MEAL,
    DeviationType.BUDGET_EXCEEDED: Category.BUDGET,
}

# check-in axis -> the deviation a "no" rating stands in for
CHECKIN_AXIS_TYPES = {
    "workout": DeviationType.SKIPPED_WORKOUT,
    "meal": DeviationType.MISSED_MEAL,
    "budget": DeviationType.BUDGET_EXCEEDED,
}
