from datetime import datetime, timedelta

import pytest

from fitcoach.adherence import record_deviation
from fitcoach.adherence.constraints_store import get_constraints
from fitcoach.errors import ValidationError
from fitcoach.extensions import db
from fitcoach.models import AdjustmentHistory, DeviationEvent, UserSignal

NOW = datetime(2026, 3, 11, 12, 0, 0)


def _log_sequence(user_id, days=(3, 2, 1)):
    outcomes = []
    for dtype, days_ago in zip(("skipped_workout", "skipped_workout", "missed_meal"), days):
        outcomes.append(record_deviation(
            user_id, dtype, "energy", now=NOW - timedelta(days=days_ago),
        ))
    return outcomes


def test_paid_user_gets_workout_simplification_on_third_deviation(make_user):
    user_id = make_user(tier="paid", threshold=3)

    first, second, third = _log_sequence(user_id)

    assert first.result.adjustments_applied == 0
    assert second.result.adjustments_applied == 0
    assert third.result.adjustments_applied >= 1
    descriptor = third.result.adjustments[0]
    assert descriptor.category == "workout"
    assert descriptor.description.startswith("Workout simplified")
    assert third.message.startswith("Deviation logged. Plan adjusted automatically.")
    assert get_constraints(user_id).workouts_per_week == 2


def test_free_user_gets_regeneration_recommendation(make_user):
    user_id = make_user(tier="free", threshold=3)

    third = _log_sequence(user_id)[-1]

    assert third.result.adjustments_applied == 0
    assert third.result.regeneration_recommended
    assert "Regenerate" in third.result.message
    assert AdjustmentHistory.query.count() == 0


def test_fourth_deviation_after_adjustment_does_not_adjust_again(make_user):
    user_id = make_user(tier="paid", threshold=3)
    _log_sequence(user_id)

    fourth = record_deviation(user_id, "dining_out", "dining_out", now=NOW - timedelta(hours=12))

    assert fourth.result.adjustments_applied == 0
    assert fourth.result.status.value == "recently_adjusted"
    assert AdjustmentHistory.query.filter_by(user_id=user_id).count() == 1


def test_round_trip_preserves_values(make_user):
    user_id = make_user()

    outcome = record_deviation(
        user_id, "substituted_meal", "preference",
        related_meal_id="meal-42", notes="  swapped for leftovers  ",
        impact={"calories": 350, "protein": 12.5, "budget": 4.75},
        now=NOW,
    )
    db.session.expire_all()
    row = db.session.get(DeviationEvent, outcome.record["id"])

    assert row.deviation_type == "substituted_meal"
    assert row.reason == "preference"
    assert row.related_meal_id == "meal-42"
    assert row.impact_calories == 350
    assert row.impact_protein == 12.5
    assert row.impact_budget == 4.75
    assert row.notes == "swapped for leftovers"
    assert row.created_at == NOW


@pytest.mark.parametrize("dtype, reason, bad", [
    ("skipped_lunch", "time", ["deviationType"]),
    ("missed_meal", "bored", ["reason"]),
    (None, None, ["deviationType", "reason"]),
])
def test_invalid_enums_are_rejected_without_writing(make_user, dtype, reason, bad):
    user_id = make_user()

    with pytest.raises(ValidationError) as exc:
        record_deviation(user_id, dtype, reason, now=NOW)

    assert exc.value.fields == bad
    assert DeviationEvent.query.count() == 0


def test_invalid_impact_is_rejected(make_user):
    user_id = make_user()

    with pytest.raises(ValidationError) as exc:
        record_deviation(user_id, "missed_meal", "time", impact={"calories": 12.5}, now=NOW)
    assert exc.value.fields == ["impactCalories"]

    with pytest.raises(ValidationError):
        record_deviation(user_id, "missed_meal", "time", impact={"budget": True}, now=NOW)


def test_client_request_id_replays_instead_of_duplicating(make_user):
    user_id = make_user(tier="paid", threshold=3)

    first = record_deviation(user_id, "skipped_workout", "time", client_request_id="req-1", now=NOW)
    again = record_deviation(user_id, "skipped_workout", "time", client_request_id="req-1",
                             now=NOW + timedelta(seconds=5))

    assert not first.replayed
    assert again.replayed
    assert again.record["id"] == first.record["id"]
    assert DeviationEvent.query.filter_by(user_id=user_id).count() == 1


def test_dining_out_impact_is_estimated_when_missing(make_user):
    user_id = make_user()

    outcome = record_deviation(user_id, "dining_out", "dining_out", now=NOW)
    body = outcome.to_dict()

    assert body["impact"] == {"calories": 200, "protein": None, "budget": None, "estimated": True}
    assert body["deviation"]["impactCalories"] is None


def test_skipped_workout_emits_signal(make_user):
    user_id = make_user()

    record_deviation(user_id, "skipped_workout", "energy", now=NOW)

    signal = UserSignal.query.filter_by(user_id=user_id).one()
    assert signal.signal_type == "workout_skipped"
