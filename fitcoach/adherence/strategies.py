# fitcoach/adherence/strategies.py
"""
Simplification strategies, in priority order.

Each strategy names the deviation types it answers, whether it still has room
to act on the current constraints, and how it rewrites them. The policy
applies exactly one per triggered evaluation.
"""
from collections import Counter
from dataclasses import replace
from typing import Iterable, Optional, Tuple

from fitcoach.adherence.enums import Category, DeviationReason, DeviationType
from fitcoach.adherence.state import AdherenceState, Constraints, WindowEvent

MIN_WORKOUTS_PER_WEEK = 2
MIN_WORKOUT_MINUTES = 20
WORKOUT_MINUTES_STEP = 15
MIN_MEALS_PER_DAY = 2
SIMPLE_COOKING_MINUTES = 15

_WORKOUT_TYPES = frozenset({DeviationType.SKIPPED_WORKOUT, DeviationType.SHORTENED_WORKOUT})


def dominant_type(events: Iterable[WindowEvent]) -> Optional[DeviationType]:
    """Majority vote; ties go to the tied type seen most recently."""
    events = list(events)
    if not events:
        return None
    counts = Counter(e.deviation_type for e in events)
    top = max(counts.values())
    tied = {t for t, n in counts.items() if n == top}
    for event in sorted(events, key=lambda e: e.created_at, reverse=True):
        if event.deviation_type in tied:
            return event.deviation_type
    return None


def _time_bound_workouts(state: AdherenceState) -> bool:
    reasons = Counter(e.reason for e in state.events if e.deviation_type in _WORKOUT_TYPES)
    if not reasons:
        return False
    top = max(reasons.values())
    return reasons.get(DeviationReason.TIME, 0) == top


class Strategy:
    name = ""
    adjustment_type = ""
    category = Category.WORKOUT
    handles = frozenset()

    def handles_type(self, deviation_type, state) -> bool:
        return deviation_type in self.handles

    def applicable(self, constraints: Constraints) -> bool:
        return True

    def apply(self, constraints: Constraints) -> Tuple[Constraints, str]:
        raise NotImplementedError


class WorkoutDurationReduction(Strategy):
    name = "reduce_workout_duration"
    adjustment_type = "workout_duration_reduction"
    category = Category.WORKOUT
    handles = frozenset({DeviationType.SHORTENED_WORKOUT, DeviationType.SKIPPED_WORKOUT})

    def handles_type(self, deviation_type, state):
        if deviation_type is DeviationType.SHORTENED_WORKOUT:
            return True
        # skipped sessions only shorten when time is what keeps getting in the way
        return deviation_type is DeviationType.SKIPPED_WORKOUT and _time_bound_workouts(state)

    def applicable(self, constraints):
        return constraints.workout_duration_minutes > MIN_WORKOUT_MINUTES

    def apply(self, constraints):
        minutes = max(MIN_WORKOUT_MINUTES, constraints.workout_duration_minutes - WORKOUT_MINUTES_STEP)
        return (replace(constraints, workout_duration_minutes=minutes),
                f"Workout simplified: sessions shortened to {minutes} minutes")


class WorkoutFrequencyReduction(Strategy):
    name = "reduce_workout_frequency"
    adjustment_type = "workout_frequency_reduction"
    category = Category.WORKOUT
    handles = _WORKOUT_TYPES

    def applicable(self, constraints):
        return constraints.workouts_per_week > MIN_WORKOUTS_PER_WEEK

    def apply(self, constraints):
        per_week = max(MIN_WORKOUTS_PER_WEEK, constraints.workouts_per_week - 1)
        return (replace(constraints, workouts_per_week=per_week),
                f"Workout simplified: next cycle reduced to {per_week} workouts per week")


class MealFrequencyReduction(Strategy):
    name = "reduce_meal_frequency"
    adjustment_type = "meal_frequency_reduction"
    category = Category.MEAL
    handles = frozenset({DeviationType.MISSED_MEAL})

    def applicable(self, constraints):
        return constraints.meals_per_day > MIN_MEALS_PER_DAY

    def apply(self, constraints):
        meals = max(MIN_MEALS_PER_DAY, constraints.meals_per_day - 1)
        return (replace(constraints, meals_per_day=meals),
                f"Meals simplified: plan reduced to {meals} meals per day")


class MealSimplification(Strategy):
    name = "simplify_meals"
    adjustment_type = "meal_simplification"
    category = Category.MEAL
    handles = frozenset({DeviationType.MISSED_MEAL, DeviationType.SUBSTITUTED_MEAL, DeviationType.DINING_OUT})

    def applicable(self, constraints):
        return (constraints.max_cooking_time_minutes > SIMPLE_COOKING_MINUTES
                or not constraints.prefer_simple_meals)

    def apply(self, constraints):
        minutes = min(constraints.max_cooking_time_minutes, SIMPLE_COOKING_MINUTES)
        return (replace(constraints, max_cooking_time_minutes=minutes, prefer_simple_meals=True),
                f"Meals simplified: quicker recipes, {minutes} minutes of cooking at most")


class BudgetReallocation(Strategy):
    name = "reallocate_budget"
    adjustment_type = "budget_reallocation"
    category = Category.BUDGET
    handles = frozenset({DeviationType.BUDGET_EXCEEDED, DeviationType.DINING_OUT})

    def applicable(self, constraints):
        return not constraints.prefer_budget_meals

    def apply(self, constraints):
        return (replace(constraints, prefer_budget_meals=True),
                "Budget reallocated: meals switched to budget-friendly options")


class PlanSimplification(Strategy):
    name = "simplify_plans"
    adjustment_type = "plan_simplification"
    category = Category.MEAL
    handles = frozenset(DeviationType)

    def apply(self, constraints):
        minutes = min(constraints.max_cooking_time_minutes, SIMPLE_COOKING_MINUTES)
        return (replace(constraints, max_cooking_time_minutes=minutes, prefer_simple_meals=True),
                "Plan simplified after repeated deviations")


STRATEGIES = (
    WorkoutDurationReduction(),
    WorkoutFrequencyReduction(),
    MealFrequencyReduction(),
    MealSimplification(),
    BudgetReallocation(),
)
FALLBACK = PlanSimplification()


def select_strategy(state: AdherenceState, constraints: Constraints) -> Strategy:
    dominant = dominant_type(state.events)
    if dominant is not None:
        for strategy in STRATEGIES:
            if strategy.handles_type(dominant, state) and strategy.applicable(constraints):
                return strategy

    seen = {e.deviation_type for e in state.events}
    for strategy in STRATEGIES:
        if any(strategy.handles_type(t, state) for t in seen) and strategy.applicable(constraints):
            return strategy
    return FALLBACK
