from datetime import datetime, timedelta

from fitcoach.adherence.aggregator import aggregate, build_state
from fitcoach.adherence.constraints_store import get_constraints
from fitcoach.adherence.enums import DeviationType, PlanStatus, SubscriptionTier, TriggerSource
from fitcoach.adherence.policy import FREE_TIER_MESSAGE, evaluate, is_triggered
from fitcoach.adherence.state import Constraints, WindowEvent
from fitcoach.adherence.strategies import FALLBACK, dominant_type, select_strategy
from fitcoach.extensions import db
from fitcoach.models import AdjustmentHistory, AdjustmentMarker, DeviationEvent

NOW = datetime(2026, 3, 11, 12, 0, 0)


def _rows(*types, reason="energy"):
    # oldest first, one hour apart, the last one an hour before NOW
    return [
        DeviationEvent(user_id=1, deviation_type=t, reason=reason,
                       created_at=NOW - timedelta(hours=len(types) - i))
        for i, t in enumerate(types)
    ]


def _state(*types, reason="energy", constraints=None):
    return build_state(1, NOW, constraints or Constraints(), _rows(*types, reason=reason), None, None)


def _seed(user_id, *types, reason="energy"):
    for row in _rows(*types, reason=reason):
        row.user_id = user_id
        db.session.add(row)
    db.session.commit()


# strategy selection

def test_dominant_type_majority():
    events = [WindowEvent(DeviationType(r.deviation_type), r.reason, r.created_at)
              for r in _rows("skipped_workout", "missed_meal", "skipped_workout")]
    assert dominant_type(events) is DeviationType.SKIPPED_WORKOUT


def test_dominant_type_tie_goes_to_most_recent():
    events = [WindowEvent(DeviationType(r.deviation_type), r.reason, r.created_at)
              for r in _rows("skipped_workout", "skipped_workout", "missed_meal", "missed_meal")]
    assert dominant_type(events) is DeviationType.MISSED_MEAL
    assert dominant_type([]) is None


def test_shortened_workouts_shorten_sessions():
    constraints = Constraints()
    strategy = select_strategy(_state("shortened_workout", "shortened_workout", "missed_meal"), constraints)
    updated, description = strategy.apply(constraints)

    assert strategy.adjustment_type == "workout_duration_reduction"
    assert updated.workout_duration_minutes == 30
    assert description.startswith("Workout simplified")


def test_skipped_for_time_shortens_sessions():
    strategy = select_strategy(_state("skipped_workout", "skipped_workout", reason="time"), Constraints())
    assert strategy.adjustment_type == "workout_duration_reduction"


def test_skipped_for_energy_drops_a_session():
    constraints = Constraints()
    strategy = select_strategy(_state("skipped_workout", "skipped_workout", "missed_meal"), constraints)
    updated, _ = strategy.apply(constraints)

    assert strategy.adjustment_type == "workout_frequency_reduction"
    assert updated.workouts_per_week == 2


def test_missed_meals_reduce_meal_count_then_simplify():
    strategy = select_strategy(_state("missed_meal", "missed_meal"), Constraints())
    assert strategy.adjustment_type == "meal_frequency_reduction"

    at_floor = Constraints(meals_per_day=2)
    strategy = select_strategy(_state("missed_meal", "missed_meal"), at_floor)
    updated, _ = strategy.apply(at_floor)
    assert strategy.adjustment_type == "meal_simplification"
    assert updated.max_cooking_time_minutes == 15
    assert updated.prefer_simple_meals


def test_budget_overruns_reallocate_budget():
    constraints = Constraints()
    strategy = select_strategy(_state("budget_exceeded", "budget_exceeded"), constraints)
    updated, description = strategy.apply(constraints)

    assert strategy.adjustment_type == "budget_reallocation"
    assert updated.prefer_budget_meals
    assert description.startswith("Budget reallocated")


def test_exhausted_strategies_fall_back_to_plan_simplification():
    constraints = Constraints(workouts_per_week=2, workout_duration_minutes=20)
    strategy = select_strategy(_state("skipped_workout", "skipped_workout"), constraints)
    assert strategy is FALLBACK

    constraints = Constraints(prefer_budget_meals=True)
    assert select_strategy(_state("budget_exceeded"), constraints) is FALLBACK


def test_floors_are_respected():
    constraints = Constraints(workouts_per_week=3, workout_duration_minutes=25)
    strategy = select_strategy(_state("shortened_workout"), constraints)
    updated, _ = strategy.apply(constraints)
    assert updated.workout_duration_minutes == 20


# tier gate and idempotence

def test_below_threshold_is_not_triggered(make_user):
    user_id = make_user(tier="paid", threshold=3)
    _seed(user_id, "skipped_workout", "skipped_workout")
    state = aggregate(user_id, as_of=NOW)

    result = evaluate(user_id, SubscriptionTier.PAID, state, get_constraints(user_id), now=NOW)

    assert not is_triggered(state)
    assert result.adjustments_applied == 0
    assert result.status is PlanStatus.MINOR_DEVIATIONS
    assert AdjustmentHistory.query.count() == 0


def test_free_tier_gets_recommendation_only(make_user):
    user_id = make_user(tier="free", threshold=3)
    _seed(user_id, "skipped_workout", "skipped_workout", "missed_meal")
    before = get_constraints(user_id)
    state = aggregate(user_id, as_of=NOW)

    result = evaluate(user_id, SubscriptionTier.FREE, state, before, now=NOW)
    db.session.commit()

    assert result.triggered
    assert result.adjustments_applied == 0
    assert result.regeneration_recommended
    assert result.message == FREE_TIER_MESSAGE
    assert get_constraints(user_id) == before
    assert AdjustmentHistory.query.count() == 0
    assert db.session.get(AdjustmentMarker, user_id) is None


def test_paid_tier_applies_exactly_one(make_user):
    user_id = make_user(tier="paid", threshold=3)
    _seed(user_id, "skipped_workout", "skipped_workout", "missed_meal")
    state = aggregate(user_id, as_of=NOW)

    result = evaluate(user_id, SubscriptionTier.PAID, state, get_constraints(user_id),
                      TriggerSource.DEVIATION, now=NOW)
    db.session.commit()

    assert result.adjustments_applied == 1
    assert result.status is PlanStatus.RECENTLY_ADJUSTED
    assert result.adjustments[0].category == "workout"
    assert get_constraints(user_id).workouts_per_week == 2

    history = AdjustmentHistory.query.filter_by(user_id=user_id).all()
    assert len(history) == 1
    assert history[0].triggered_by == "deviation"
    assert history[0].before_state["workouts_per_week"] == 3
    assert history[0].after_state["workouts_per_week"] == 2

    marker = db.session.get(AdjustmentMarker, user_id)
    assert marker.last_adjusted_at == NOW
    assert marker.last_adjustment_id == history[0].id


def test_reevaluating_does_not_adjust_twice(make_user):
    user_id = make_user(tier="paid", threshold=3)
    _seed(user_id, "skipped_workout", "skipped_workout", "missed_meal")
    stale = aggregate(user_id, as_of=NOW)

    evaluate(user_id, SubscriptionTier.PAID, stale, get_constraints(user_id), now=NOW)
    db.session.commit()

    # same stale snapshot: the marker guard refuses a second write
    again = evaluate(user_id, SubscriptionTier.PAID, stale, get_constraints(user_id), now=NOW)
    db.session.commit()
    assert again.adjustments_applied == 0
    assert again.status is PlanStatus.RECENTLY_ADJUSTED
    assert again.last_adjustment is not None

    # fresh snapshot a few days later: still inside the window, still no second adjustment
    later = NOW + timedelta(days=3)
    fresh = aggregate(user_id, as_of=later)
    assert fresh.adjusted_in_window
    result = evaluate(user_id, SubscriptionTier.PAID, fresh, get_constraints(user_id), now=later)
    db.session.commit()

    assert result.adjustments_applied == 0
    assert AdjustmentHistory.query.filter_by(user_id=user_id).count() == 1


def test_deferred_evaluation_reports_without_writing(make_user):
    user_id = make_user(tier="paid", threshold=3)
    _seed(user_id, "missed_meal", "missed_meal", "missed_meal")
    state = aggregate(user_id, as_of=NOW)

    result = evaluate(user_id, SubscriptionTier.PAID, state, get_constraints(user_id),
                      now=NOW, allow_adjustment=False)

    assert result.triggered
    assert result.adjustments_applied == 0
    assert AdjustmentHistory.query.count() == 0
