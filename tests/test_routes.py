from fitcoach.extensions import db
from fitcoach.models import DeviationEvent


def test_health(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["success"] is True

    res = client.get("/api/v1/health/db")
    assert res.status_code == 200
    assert res.get_json()["status"] == "connected"


def test_missing_token_is_401(client):
    res = client.post("/api/v1/deviations", json={"deviationType": "missed_meal", "reason": "time"})
    assert res.status_code == 401
    assert res.get_json()["success"] is False


def test_unknown_user_is_401(client, auth_headers):
    res = client.get("/api/v1/home/summary", headers=auth_headers(999))
    assert res.status_code == 401
    assert res.get_json()["message"] == "User not found"


def test_log_deviation_envelope(client, make_user, auth_headers):
    user_id = make_user()

    res = client.post("/api/v1/deviations", headers=auth_headers(user_id), json={
        "deviationType": "dining_out",
        "reason": "dining_out",
        "impactBudget": 22.5,
        "relatedMealId": "m-1",
    })

    assert res.status_code == 201
    body = res.get_json()
    assert body["success"] is True
    assert body["tier"] == "free"
    assert body["deviation"]["deviationType"] == "dining_out"
    assert body["deviation"]["impactBudget"] == 22.5
    assert body["impact"]["estimated"] is True
    assert body["adjustmentResult"]["adjustmentsApplied"] == 0
    assert body["message"].startswith("Deviation logged.")


def test_invalid_deviation_is_400(client, make_user, auth_headers):
    user_id = make_user()

    res = client.post("/api/v1/deviations", headers=auth_headers(user_id),
                      json={"deviationType": "nap", "reason": "time"})

    assert res.status_code == 400
    assert res.get_json()["fields"] == ["deviationType"]
    db.session.remove()
    assert DeviationEvent.query.count() == 0


def test_non_object_body_is_400(client, make_user, auth_headers):
    user_id = make_user()
    res = client.post("/api/v1/checkins", headers=auth_headers(user_id), json=["no", "no", "no"])
    assert res.status_code == 400


def test_replayed_deviation_is_200(client, make_user, auth_headers):
    user_id = make_user()
    payload = {"deviationType": "missed_meal", "reason": "time", "clientRequestId": "abc-1"}

    first = client.post("/api/v1/deviations", headers=auth_headers(user_id), json=payload)
    second = client.post("/api/v1/deviations", headers=auth_headers(user_id), json=payload)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.get_json()["deviation"]["id"] == first.get_json()["deviation"]["id"]


def test_paid_checkin_flow(client, make_user, auth_headers):
    user_id = make_user(tier="paid", threshold=1)
    headers = auth_headers(user_id)

    res = client.post("/api/v1/checkins", headers=headers, json={
        "workoutAdherence": "yes",
        "mealAdherence": "no",
        "budgetAdherence": "yes",
        "primaryReason": "time",
    })

    assert res.status_code == 201
    body = res.get_json()
    assert body["checkin"]["adjustmentApplied"] is True
    assert body["adjustmentResult"]["adjustmentsApplied"] == 1
    assert body["adjustmentResult"]["requiresRegeneration"] is True

    summary = client.get("/api/v1/home/summary", headers=headers).get_json()
    assert summary["planStatus"]["status"] == "recently_adjusted"
    assert summary["user"]["tier"] == "paid"

    history = client.get("/api/v1/adjustments", headers=headers).get_json()
    assert len(history["adjustments"]) == 1
    assert history["adjustments"][0]["triggeredBy"] == "weekly_checkin"

    checkins = client.get("/api/v1/checkins", headers=headers).get_json()
    assert len(checkins["checkins"]) == 1


def test_constraints_roundtrip(client, make_user, auth_headers):
    user_id = make_user()
    headers = auth_headers(user_id)

    res = client.patch("/api/v1/constraints", headers=headers, json={"workoutsPerWeek": 5})
    assert res.status_code == 200
    assert res.get_json()["constraints"]["workouts_per_week"] == 5

    res = client.get("/api/v1/constraints", headers=headers)
    assert res.get_json()["constraints"]["workouts_per_week"] == 5

    res = client.put("/api/v1/constraints", headers=headers, json={"mealsPerDay": 9})
    assert res.status_code == 400
    assert res.get_json()["fields"] == ["mealsPerDay"]


def test_regeneration_quota_is_402(client, make_user, auth_headers, app):
    app.config["FREE_REGENERATION_LIMIT"] = 1
    user_id = make_user()
    headers = auth_headers(user_id)

    assert client.post("/api/v1/plans/regenerate", headers=headers).status_code == 201
    res = client.post("/api/v1/plans/regenerate", headers=headers)

    assert res.status_code == 402
    assert res.get_json()["success"] is False


def test_signal_endpoint(client, make_user, auth_headers):
    user_id = make_user()
    headers = auth_headers(user_id)

    ok = client.post("/api/v1/signals", headers=headers,
                     json={"signal_type": "water_logged", "payload": {"ml": 250}})
    bad = client.post("/api/v1/signals", headers=headers, json={"signal_type": "dance"})

    assert ok.status_code == 201
    assert bad.status_code == 400


def test_history_bounds_are_validated(client, make_user, auth_headers):
    user_id = make_user()

    res = client.get("/api/v1/deviations?days=365", headers=auth_headers(user_id))

    assert res.status_code == 400
    assert res.get_json()["fields"] == ["days"]
