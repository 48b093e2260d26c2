"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from health_tracker.api.schemas import (
    DietPlanIn,
    ExerciseIn,
    FoodIn,
    MoodIn,
    PostIn,
    ProfileIn,
    SensorReadingIn,
    SubscriptionIn,
    ValueIn,
    WeightIn,
)
from health_tracker.app_logging import configure_logging
from health_tracker.containers import AppContainer
from health_tracker.domain.entries import RecordType
from health_tracker.domain.goals import GoalType
from health_tracker.domain.recognition import RecognitionError, RecognitionErrorKind
from health_tracker.services import progress
from health_tracker.services.recognition import (
    CaptureSession,
    food_suggestions,
    nutrition_summary,
    recommended_foods,
)
from health_tracker.services.tracking import TrackingStore

_CLIENT_ERROR_KINDS = {
    RecognitionErrorKind.NO_FOOD_DETECTED,
    RecognitionErrorKind.IMAGE_PROCESSING_FAILED,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ValueError)
    async def invalid_value(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            content={"detail": str(exc)},
        )

    @app.exception_handler(RecognitionError)
    async def recognition_failed(
        request: Request, exc: RecognitionError
    ) -> JSONResponse:
        if exc.kind in _CLIENT_ERROR_KINDS:
            status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
        else:
            logger.warning("Recognition failed: %s", exc)
            status_code = status.HTTP_502_BAD_GATEWAY
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "kind": exc.kind.value},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/today")
    async def today(request: Request) -> dict[str, object]:
        """Return today's snapshot: entries, totals and progress."""
        store = _store(request)
        return jsonable_encoder(store.snapshot())

    @app.get("/foods")
    async def list_foods(request: Request, day: date | None = None) -> dict[str, object]:
        store = _store(request)
        entries = store.food_entries if day is None else store.date_entries(day)
        return {"entries": jsonable_encoder(list(entries))}

    @app.post("/foods", status_code=status.HTTP_201_CREATED)
    async def add_food(payload: FoodIn, request: Request) -> dict[str, object]:
        entry = payload.to_domain()
        _store(request).add_food(entry)
        return jsonable_encoder(entry)

    @app.get("/foods/{entry_id}")
    async def get_food(entry_id: UUID, request: Request) -> dict[str, object]:
        entry = _store(request).get_food(entry_id)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return jsonable_encoder(entry)

    @app.put("/foods/{entry_id}")
    async def update_food(
        entry_id: UUID, payload: FoodIn, request: Request
    ) -> dict[str, object]:
        """Replace a food entry, keeping its id and, unless given, its time."""
        store = _store(request)
        current = store.get_food(entry_id)
        if current is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        overrides: dict[str, object] = {"id": entry_id}
        if payload.timestamp is None:
            overrides["timestamp"] = current.timestamp
        entry = payload.to_domain(**overrides)
        store.update_food(entry)
        return jsonable_encoder(entry)

    @app.delete("/foods/{entry_id}")
    async def remove_food(entry_id: UUID, request: Request) -> dict[str, bool]:
        return {"removed": _store(request).remove_food(entry_id)}

    @app.get("/days/{day}")
    async def day_detail(day: date, request: Request) -> dict[str, object]:
        """Totals and entries for one calendar day."""
        store = _store(request)
        entries = store.date_entries(day)
        return {
            "day": day.isoformat(),
            "calories": store.date_calories(day),
            "protein": store.date_protein(day),
            "carbs": store.date_carbs(day),
            "fat": store.date_fat(day),
            "scaled_totals": jsonable_encoder(nutrition_summary(entries)),
            "entries": jsonable_encoder(entries),
            "exercises": jsonable_encoder(store.date_exercises(day)),
        }

    @app.get("/weekly")
    async def weekly(request: Request) -> dict[str, object]:
        return jsonable_encoder(_store(request).weekly_report())

    @app.post("/exercises", status_code=status.HTTP_201_CREATED)
    async def add_exercise(payload: ExerciseIn, request: Request) -> dict[str, object]:
        entry = payload.to_domain()
        _store(request).add_exercise(entry)
        return jsonable_encoder(entry)

    @app.delete("/exercises/{entry_id}")
    async def remove_exercise(entry_id: UUID, request: Request) -> dict[str, bool]:
        return {"removed": _store(request).remove_exercise(entry_id)}

    @app.post("/moods", status_code=status.HTTP_201_CREATED)
    async def add_mood(payload: MoodIn, request: Request) -> dict[str, object]:
        entry = payload.to_domain()
        _store(request).add_mood(entry)
        return jsonable_encoder(entry)

    @app.post("/weights", status_code=status.HTTP_201_CREATED)
    async def add_weight(payload: WeightIn, request: Request) -> dict[str, object]:
        entry = payload.to_domain()
        store = _store(request)
        store.add_weight(entry)
        return {"entry": jsonable_encoder(entry), "bmi": store.bmi}

    @app.get("/profile")
    async def get_profile(request: Request) -> dict[str, object]:
        profile = _store(request).profile
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return jsonable_encoder(profile)

    @app.put("/profile")
    async def update_profile(payload: ProfileIn, request: Request) -> dict[str, object]:
        store = _store(request)
        profile = payload.to_domain(store.profile)
        store.update_profile(profile)
        return jsonable_encoder(profile)

    @app.post("/sensors")
    async def sensor_reading(
        payload: SensorReadingIn, request: Request
    ) -> dict[str, object]:
        store = _store(request)
        store.apply_sensor_reading(steps=payload.steps, weight=payload.weight)
        return jsonable_encoder(store.health)

    @app.get("/goals")
    async def list_goals(request: Request) -> dict[str, object]:
        goals = _store(request).goals
        return {
            "goals": [
                {**jsonable_encoder(goal), "progress": progress.goal_progress(goal)}
                for goal in goals
            ]
        }

    @app.post("/goals/{goal_id}/progress")
    async def update_goal(
        goal_id: UUID, payload: ValueIn, request: Request
    ) -> dict[str, bool]:
        return {"updated": _store(request).update_goal_progress(goal_id, payload.value)}

    @app.post("/okr/key-results/{key_result_id}")
    async def update_key_result(
        key_result_id: UUID, payload: ValueIn, request: Request
    ) -> dict[str, bool]:
        return {
            "updated": _store(request).update_key_result(key_result_id, payload.value)
        }

    @app.get("/progress")
    async def progress_overview(request: Request) -> dict[str, object]:
        """Calorie, body and OKR progress in one response."""
        store = _store(request)
        return {
            "calorie_target": store.calorie_target,
            "calorie_progress": store.calorie_progress,
            "bmi": store.bmi,
            "bmi_category": store.bmi_category.value,
            "okr": jsonable_encoder(store.okr),
            "okr_progress": store.okr_progress,
            "active_goals": jsonable_encoder(store.active_goals),
            "is_vip_member": store.is_vip_member,
        }

    @app.get("/suggestions")
    async def suggestions(
        request: Request, goal_type: GoalType = GoalType.MAINTENANCE
    ) -> dict[str, object]:
        store = _store(request)
        return {
            "suggestions": food_suggestions(store.today_food, goal_type),
            "recommended_foods": recommended_foods(goal_type),
        }

    @app.put("/diet-plan")
    async def activate_diet_plan(
        payload: DietPlanIn, request: Request
    ) -> dict[str, object]:
        plan = _store(request).activate_diet_plan(payload.to_domain())
        return jsonable_encoder(plan)

    @app.post("/subscription", status_code=status.HTTP_201_CREATED)
    async def purchase_subscription(
        payload: SubscriptionIn, request: Request
    ) -> dict[str, object]:
        subscription = _store(request).purchase_subscription(
            payload.tier, payload.price
        )
        return {
            **jsonable_encoder(subscription),
            "end_date": subscription.end_date.isoformat(),
        }

    @app.get("/buddies")
    async def list_buddies(request: Request) -> dict[str, object]:
        return {"buddies": jsonable_encoder(list(_store(request).buddies))}

    @app.post("/buddies/{buddy_id}/follow")
    async def follow_buddy(buddy_id: UUID, request: Request) -> dict[str, bool]:
        if not _store(request).follow_buddy(buddy_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"ok": True}

    @app.post("/posts", status_code=status.HTTP_201_CREATED)
    async def create_post(payload: PostIn, request: Request) -> dict[str, object]:
        post = _store(request).create_post(payload.content, payload.images)
        if post is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail="Profile required"
            )
        return jsonable_encoder(post)

    @app.post("/recognize")
    async def recognize(
        request: Request,
        record_type: RecordType = RecordType.PHOTO,
        accept: bool = False,
    ) -> dict[str, object]:
        """Identify foods in the raw request body; optionally log them."""
        state_container: AppContainer = request.app.state.container
        session = CaptureSession(
            provider=state_container.recognition_provider,
            store=state_container.store,
            record_type=record_type,
        )
        candidates = await session.capture(await request.body())
        logged = session.accept() if accept else []
        return {
            "candidates": jsonable_encoder(candidates),
            "logged": len(logged),
        }

    return app


def _store(request: Request) -> TrackingStore:
    container: AppContainer = request.app.state.container
    return container.store

