"""Tests for the HTTP API."""

import warnings

from fastapi.testclient import TestClient

from health_tracker.api.app import create_app
from health_tracker.api.schemas import FoodIn, parse_number
from health_tracker.containers import AppContainer
from health_tracker.domain.goals import Goal, GoalType
from health_tracker.domain.recognition import RecognitionError, RecognitionErrorKind
from health_tracker.services.tracking import TrackingStore
from tests.conftest import NOON, StubRecognitionProvider

TODAY = NOON.isoformat()
YESTERDAY = "2024-03-14T12:00:00+00:00"


def _food(name: str, calories: float, timestamp: str = TODAY, **extra: object) -> dict:
    return {
        "name": name,
        "weight": 100,
        "portion": "1 bowl",
        "nutrition": {"calories": calories, "protein": 10, "carbs": 20, "fat": 5},
        "timestamp": timestamp,
        **extra,
    }


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    assert client.get("/health").json() == {"status": "ok"}


def test_food_crud_and_today(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    created = client.post("/foods", json=_food("oats", 300))
    client.post("/foods", json=_food("chicken", 450))
    client.post("/foods", json=_food("salad", 250))
    client.post("/foods", json=_food("toast", 200, timestamp=YESTERDAY))

    assert created.status_code == 201
    today = client.get("/today").json()
    assert today["today_calories"] == 1000
    assert today["calorie_progress"] == 0.5
    assert len(today["today_food"]) == 3
    assert client.get("/days/2024-03-14").json()["calories"] == 200

    entry_id = created.json()["id"]
    updated = client.put(f"/foods/{entry_id}", json=_food("oats", 350, quantity=150))
    assert updated.status_code == 200
    assert client.get(f"/foods/{entry_id}").json()["quantity"] == 150

    assert client.delete(f"/foods/{entry_id}").json() == {"removed": True}
    assert client.delete(f"/foods/{entry_id}").json() == {"removed": False}
    assert client.get(f"/foods/{entry_id}").status_code == 404


def test_unparseable_numbers_default_to_zero(
    container: AppContainer, store: TrackingStore
) -> None:
    client = TestClient(create_app(container))
    payload = _food("mystery", 0)
    payload["nutrition"]["calories"] = "lots"

    response = client.post("/foods", json=payload)

    assert response.status_code == 201
    assert store.food_entries[0].nutrition.calories == 0


def test_out_of_range_values_are_rejected(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    payload = _food("oats", 300)
    payload["nutrition"]["fat"] = -3

    assert client.post("/foods", json=payload).status_code == 422
    assert client.post("/moods", json={"mood": "happy", "intensity": 9}).status_code == 422


def test_domain_validation_errors_map_to_422_without_deprecation(
    container: AppContainer,
) -> None:
    client = TestClient(create_app(container))
    payload = _food("oats", 300)
    payload["nutrition"]["fat"] = -3

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        response = client.post("/foods", json=payload)

    assert response.status_code == 422
    assert "detail" in response.json()
    assert not [w for w in caught if "HTTP_422" in str(w.message)]


def test_weekly_report(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/foods", json=_food("feast", 2000))

    report = client.get("/weekly").json()

    assert len(report["days"]) == 7
    assert report["days"][-1]["calories"] == 2000
    assert report["on_target_days"] == 1


def test_profile_weight_and_progress(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    assert client.get("/profile").status_code == 404

    profile = {
        "nickname": "Sam",
        "gender": "male",
        "birthday": "1990-05-01",
        "height": "180",
        "weight": 81,
    }
    assert client.put("/profile", json=profile).status_code == 200
    weight = client.post("/weights", json={"weight": 72.9, "timestamp": TODAY}).json()

    assert round(weight["bmi"], 1) == 22.5
    progress = client.get("/progress").json()
    assert progress["bmi_category"] == "normal"
    assert client.post("/sensors", json={"steps": 3000}).json()["steps"] == 3000


def test_goal_progress_endpoint(container: AppContainer, store: TrackingStore) -> None:
    goal = Goal(type=GoalType.FITNESS, target_value=10000, unit="steps")
    store.add_goal(goal)
    client = TestClient(create_app(container))

    response = client.post(f"/goals/{goal.id}/progress", json={"value": 5000})

    assert response.json() == {"updated": True}
    assert client.get("/goals").json()["goals"][0]["progress"] == 0.5


def test_diet_plan_and_subscription(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    plan = client.put("/diet-plan", json={"name": "Lean", "daily_calories": 1500})
    subscription = client.post("/subscription", json={"tier": "monthly", "price": 18})

    assert plan.json()["is_active"] is True
    assert client.get("/progress").json()["calorie_target"] == 1500
    assert subscription.status_code == 201
    assert subscription.json()["end_date"].startswith("2024-04-15")


def test_recognize_returns_candidates_and_logs(
    container: AppContainer, store: TrackingStore
) -> None:
    client = TestClient(create_app(container))

    preview = client.post("/recognize", content=b"image-bytes")
    logged = client.post(
        "/recognize", params={"accept": "true", "record_type": "album"}, content=b"img"
    )

    assert preview.status_code == 200
    assert preview.json()["candidates"][0]["name"] == "banana"
    assert logged.json()["logged"] == 1
    assert [entry.record_type for entry in store.food_entries] == ["album"]


def test_recognize_with_no_candidates_is_not_an_error(
    container: AppContainer,
    recognition_provider: StubRecognitionProvider,
    store: TrackingStore,
) -> None:
    recognition_provider.results = []
    client = TestClient(create_app(container))

    response = client.post("/recognize", params={"accept": "true"}, content=b"img")

    assert response.status_code == 200
    assert response.json() == {"candidates": [], "logged": 0}
    assert store.food_entries == ()


def test_recognize_maps_errors(
    container: AppContainer, recognition_provider: StubRecognitionProvider
) -> None:
    client = TestClient(create_app(container))

    recognition_provider.error = RecognitionError(RecognitionErrorKind.NO_FOOD_DETECTED)
    assert client.post("/recognize", content=b"img").status_code == 422

    recognition_provider.error = RecognitionError(
        RecognitionErrorKind.MODEL_LOADING_FAILED
    )
    response = client.post("/recognize", content=b"img")
    assert response.status_code == 502
    assert response.json()["kind"] == "modelLoadingFailed"


def test_parse_number() -> None:
    assert parse_number("12.5") == 12.5
    assert parse_number(" 7 ") == 7
    assert parse_number("abc") == 0
    assert parse_number(None) == 0
    assert parse_number("nan") == 0
    assert FoodIn(name="x", weight="heavy").weight == 0
