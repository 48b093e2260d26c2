"""Tracking store: the single owner of all logged entries and goals."""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from threading import Lock
from typing import TypeVar
from uuid import UUID
from zoneinfo import ZoneInfo

from health_tracker.domain.entries import (
    ExerciseEntry,
    FoodEntry,
    MoodEntry,
    WeightEntry,
    utc_now,
)
from health_tracker.domain.goals import (
    OKR,
    DietPlan,
    Goal,
    GoalType,
    KeyResult,
    Subscription,
    SubscriptionTier,
)
from health_tracker.domain.profile import Gender, HealthSnapshot, UserProfile
from health_tracker.domain.social import FoodBuddy, FoodPost
from health_tracker.domain.stats import DaySummary, WeeklyReport
from health_tracker.services import progress
from health_tracker.services.persistence import (
    DIET_PLAN,
    EXERCISE_ENTRIES,
    FOOD_ENTRIES,
    HEALTH_GOALS,
    MOOD_ENTRIES,
    OKR_PROGRESS,
    SUBSCRIPTION,
    USER_PROFILE,
    WEIGHT_ENTRIES,
    InlineDispatcher,
    PersistDispatcher,
    PersistenceGateway,
)

DEFAULT_CALORIE_TARGET = 2000.0
DEFAULT_WEIGHT_KG = 65.0
DEFAULT_HEIGHT_CM = 165.0
DEFAULT_PROFILE_WEIGHT_KG = 55.0
WEEK_DAYS = 7

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TrackingSnapshot:
    """Point-in-time view of the store for observers."""

    today: date
    today_food: tuple[FoodEntry, ...]
    today_exercises: tuple[ExerciseEntry, ...]
    today_mood: MoodEntry | None
    today_calories: float
    today_protein: float
    today_carbs: float
    today_fat: float
    calorie_target: float
    calorie_progress: float
    current_weight: float
    health: HealthSnapshot
    bmi: float
    bmi_category: progress.BmiCategory
    okr_progress: float
    is_vip_member: bool


Listener = Callable[[TrackingSnapshot], None]


class TrackingStore:
    """Holds every collection, answers date queries and persists changes.

    All mutations run on the caller's thread. After each one, observers are
    notified and the touched collection is handed to the dispatcher as a
    complete serialized snapshot. A failed write is logged and retried with
    the current state on the next mutation; memory is never rolled back.

    Day boundaries are computed in ``timezone``. Naive datetimes passed to
    queries, or stored on entries, are read as wall time in that zone.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        dispatcher: PersistDispatcher | None = None,
        *,
        timezone: ZoneInfo | None = None,
        clock: Callable[[], datetime] = utc_now,
        calorie_target: float = DEFAULT_CALORIE_TARGET,
    ) -> None:
        self.gateway = gateway
        self.dispatcher = dispatcher or InlineDispatcher()
        self.timezone = timezone or ZoneInfo("UTC")
        self.clock = clock
        self._default_calorie_target = calorie_target
        self.calorie_target = calorie_target

        self._food: list[FoodEntry] = []
        self._exercises: list[ExerciseEntry] = []
        self._moods: list[MoodEntry] = []
        self._weights: list[WeightEntry] = []
        self._goals: list[Goal] = []
        self._profile: UserProfile | None = None
        self._okr: OKR | None = None
        self._diet_plan: DietPlan | None = None
        self._subscription: Subscription | None = None
        self._buddies: list[FoodBuddy] = []
        self._posts: list[FoodPost] = []
        self._my_posts: list[FoodPost] = []

        self.current_weight = DEFAULT_WEIGHT_KG
        self.health = HealthSnapshot(weight=DEFAULT_WEIGHT_KG, height=DEFAULT_HEIGHT_CM)

        self._listeners: list[Listener] = []
        self._dirty: set[str] = set()
        self._dirty_lock = Lock()

    @classmethod
    def open(
        cls,
        gateway: PersistenceGateway,
        dispatcher: PersistDispatcher | None = None,
        *,
        seed_defaults: bool = True,
        **kwargs: object,
    ) -> "TrackingStore":
        """Create a store from persisted collections."""
        store = cls(gateway, dispatcher, **kwargs)  # type: ignore[arg-type]
        store.load()
        if seed_defaults:
            store._seed_defaults()
        return store

    def load(self) -> None:
        """Replace in-memory state with what the gateway holds."""
        self._food = list(self.gateway.load(FOOD_ENTRIES))
        self._exercises = list(self.gateway.load(EXERCISE_ENTRIES))
        self._moods = list(self.gateway.load(MOOD_ENTRIES))
        self._weights = list(self.gateway.load(WEIGHT_ENTRIES))
        self._goals = list(self.gateway.load(HEALTH_GOALS))
        self._profile = self.gateway.load(USER_PROFILE)
        self._okr = self.gateway.load(OKR_PROGRESS)
        self._diet_plan = self.gateway.load(DIET_PLAN)
        self._subscription = self.gateway.load(SUBSCRIPTION)

        if self._diet_plan is not None:
            self.calorie_target = self._diet_plan.daily_calories
        else:
            self.calorie_target = self._default_calorie_target
        height = self._profile.height if self._profile else DEFAULT_HEIGHT_CM
        if self._weights:
            self.current_weight = self._weights[0].weight
        elif self._profile is not None:
            self.current_weight = self._profile.weight
        self.health = HealthSnapshot(weight=self.current_weight, height=height)
        _logger.info(
            "Loaded %s food, %s exercise, %s mood, %s weight entries",
            len(self._food),
            len(self._exercises),
            len(self._moods),
            len(self._weights),
        )

    # Observation

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> TrackingSnapshot:
        today_food = self.today_food
        bmi_value = self.bmi
        return TrackingSnapshot(
            today=self.today(),
            today_food=tuple(today_food),
            today_exercises=tuple(self.today_exercises),
            today_mood=self.today_mood,
            today_calories=_sum(entry.nutrition.calories for entry in today_food),
            today_protein=_sum(entry.nutrition.protein for entry in today_food),
            today_carbs=_sum(entry.nutrition.carbs for entry in today_food),
            today_fat=_sum(entry.nutrition.fat for entry in today_food),
            calorie_target=self.calorie_target,
            calorie_progress=self.calorie_progress,
            current_weight=self.current_weight,
            health=self.health,
            bmi=bmi_value,
            bmi_category=progress.bmi_category(bmi_value),
            okr_progress=self.okr_progress,
            is_vip_member=self.is_vip_member,
        )

    # Collections

    @property
    def food_entries(self) -> tuple[FoodEntry, ...]:
        return tuple(self._food)

    @property
    def exercise_entries(self) -> tuple[ExerciseEntry, ...]:
        return tuple(self._exercises)

    @property
    def mood_entries(self) -> tuple[MoodEntry, ...]:
        return tuple(self._moods)

    @property
    def weight_entries(self) -> tuple[WeightEntry, ...]:
        return tuple(self._weights)

    @property
    def goals(self) -> tuple[Goal, ...]:
        return tuple(self._goals)

    @property
    def active_goals(self) -> list[Goal]:
        return [goal for goal in self._goals if goal.is_active]

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    @property
    def okr(self) -> OKR | None:
        return self._okr

    @property
    def diet_plan(self) -> DietPlan | None:
        return self._diet_plan

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    @property
    def buddies(self) -> tuple[FoodBuddy, ...]:
        return tuple(self._buddies)

    @property
    def posts(self) -> tuple[FoodPost, ...]:
        return tuple(self._posts)

    @property
    def my_posts(self) -> tuple[FoodPost, ...]:
        return tuple(self._my_posts)

    # Today views

    def today(self) -> date:
        return self._local_date(self.clock())

    @property
    def today_food(self) -> list[FoodEntry]:
        return self.date_entries(self.today())

    @property
    def today_exercises(self) -> list[ExerciseEntry]:
        return self.date_exercises(self.today())

    @property
    def today_mood(self) -> MoodEntry | None:
        """Most recently added mood entry dated today."""
        start, end = self._day_bounds(self.today())
        for entry in self._moods:
            if self._within(entry.timestamp, start, end):
                return entry
        return None

    @property
    def today_calories(self) -> float:
        return self.date_calories(self.today())

    @property
    def today_protein(self) -> float:
        return self.date_protein(self.today())

    @property
    def today_carbs(self) -> float:
        return self.date_carbs(self.today())

    @property
    def today_fat(self) -> float:
        return self.date_fat(self.today())

    @property
    def calorie_progress(self) -> float:
        return progress.calorie_progress(self.today_calories, self.calorie_target)

    @property
    def bmi(self) -> float:
        return progress.bmi(self.health.height, self.health.weight)

    @property
    def bmi_category(self) -> progress.BmiCategory:
        return progress.bmi_category(self.bmi)

    @property
    def okr_progress(self) -> float:
        if self._okr is None:
            return 0.0
        return progress.okr_progress(self._okr.key_results)

    @property
    def is_vip_member(self) -> bool:
        subscription = self._subscription
        if subscription is None or not subscription.is_active:
            return False
        return self._aware(self.clock()) < self._aware(subscription.end_date)

    # Date-scoped queries

    def date_entries(self, day: date | datetime) -> list[FoodEntry]:
        """Food entries whose local calendar day matches day."""
        start, end = self._day_bounds(day)
        return [
            entry for entry in self._food if self._within(entry.timestamp, start, end)
        ]

    def date_exercises(self, day: date | datetime) -> list[ExerciseEntry]:
        start, end = self._day_bounds(day)
        return [
            entry
            for entry in self._exercises
            if self._within(entry.timestamp, start, end)
        ]

    def date_calories(self, day: date | datetime) -> float:
        return _sum(entry.nutrition.calories for entry in self.date_entries(day))

    def date_protein(self, day: date | datetime) -> float:
        return _sum(entry.nutrition.protein for entry in self.date_entries(day))

    def date_carbs(self, day: date | datetime) -> float:
        return _sum(entry.nutrition.carbs for entry in self.date_entries(day))

    def date_fat(self, day: date | datetime) -> float:
        return _sum(entry.nutrition.fat for entry in self.date_entries(day))

    def weekly_series(self) -> list[DaySummary]:
        """Summaries for the seven days ending today, oldest first."""
        today = self.today()
        series = []
        for offset in range(WEEK_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            food = self.date_entries(day)
            exercises = self.date_exercises(day)
            series.append(
                DaySummary(
                    day=day,
                    calories=_sum(entry.nutrition.calories for entry in food),
                    protein=_sum(entry.nutrition.protein for entry in food),
                    carbs=_sum(entry.nutrition.carbs for entry in food),
                    fat=_sum(entry.nutrition.fat for entry in food),
                    exercise_minutes=sum(entry.minutes for entry in exercises),
                )
            )
        return series

    def weekly_report(self) -> WeeklyReport:
        days = self.weekly_series()
        target = self.calorie_target
        return WeeklyReport(
            days=days,
            calorie_target=target,
            average_calories=_sum(day.calories for day in days) / len(days),
            logged_days=sum(1 for day in days if day.calories > 0),
            total_protein=_sum(day.protein for day in days),
            on_target_days=sum(
                1 for day in days if progress.is_on_target(day.calories, target)
            ),
            achievement_rate=progress.achievement_rate(days, target),
        )

    # Food

    def add_food(self, entry: FoodEntry) -> None:
        self._food.insert(0, entry)
        self._changed(FOOD_ENTRIES)

    def update_food(self, entry: FoodEntry) -> bool:
        """Replace the entry with the same id; returns False when unknown."""
        if not _replace_by_id(self._food, entry):
            return False
        self._changed(FOOD_ENTRIES)
        return True

    def remove_food(self, entry_id: UUID) -> bool:
        if not _remove_by_id(self._food, entry_id):
            return False
        self._changed(FOOD_ENTRIES)
        return True

    def get_food(self, entry_id: UUID) -> FoodEntry | None:
        return _find_by_id(self._food, entry_id)

    # Exercise

    def add_exercise(self, entry: ExerciseEntry) -> None:
        self._exercises.insert(0, entry)
        self._changed(EXERCISE_ENTRIES)

    def remove_exercise(self, entry_id: UUID) -> bool:
        if not _remove_by_id(self._exercises, entry_id):
            return False
        self._changed(EXERCISE_ENTRIES)
        return True

    # Mood and weight

    def add_mood(self, entry: MoodEntry) -> None:
        self._moods.insert(0, entry)
        self._changed(MOOD_ENTRIES)

    def add_weight(self, entry: WeightEntry) -> None:
        """Log a weight and make it the current body weight."""
        self._weights.insert(0, entry)
        self.current_weight = entry.weight
        self.health = replace(self.health, weight=entry.weight)
        self._changed(WEIGHT_ENTRIES)

    # Profile and sensors

    def update_profile(self, profile: UserProfile) -> None:
        """Replace the profile; its height and weight drive the health snapshot."""
        self._profile = profile
        self.current_weight = profile.weight
        self.health = replace(self.health, height=profile.height, weight=profile.weight)
        self._changed(USER_PROFILE)

    def apply_sensor_reading(
        self, *, steps: int | None = None, weight: float | None = None
    ) -> None:
        """Fold in plain numeric readings from a health sensor."""
        changes: dict[str, object] = {}
        if steps is not None:
            changes["steps"] = max(int(steps), 0)
        if weight is not None and weight > 0:
            changes["weight"] = weight
            self.current_weight = weight
        if not changes:
            return
        self.health = replace(self.health, **changes)
        self._changed()

    # Goals, plans, membership

    def add_goal(self, goal: Goal) -> None:
        self._goals.insert(0, goal)
        self._changed(HEALTH_GOALS)

    def update_goal_progress(self, goal_id: UUID, new_value: float) -> bool:
        goal = _find_by_id(self._goals, goal_id)
        if goal is None:
            return False
        _replace_by_id(self._goals, replace(goal, current_value=new_value))
        self._changed(HEALTH_GOALS)
        return True

    def set_okr(self, okr: OKR) -> None:
        self._okr = okr
        self._changed(OKR_PROGRESS)

    def update_key_result(self, key_result_id: UUID, current: float) -> bool:
        if self._okr is None:
            return False
        key_results = list(self._okr.key_results)
        key_result = _find_by_id(key_results, key_result_id)
        if key_result is None:
            return False
        _replace_by_id(key_results, replace(key_result, current=current))
        self._okr = replace(self._okr, key_results=tuple(key_results))
        self._changed(OKR_PROGRESS)
        return True

    def activate_diet_plan(self, plan: DietPlan) -> DietPlan:
        """Make plan the active one and adopt its daily calorie target."""
        self._diet_plan = replace(plan, is_active=True)
        self.calorie_target = plan.daily_calories
        self._changed(DIET_PLAN)
        return self._diet_plan

    def purchase_subscription(self, tier: SubscriptionTier, price: float) -> Subscription:
        self._subscription = Subscription(
            tier=tier, start_date=self._aware(self.clock()), price=price
        )
        self._changed(SUBSCRIPTION)
        return self._subscription

    # Social feed (session-only)

    def follow_buddy(self, buddy_id: UUID) -> bool:
        """Toggle following a buddy."""
        buddy = _find_by_id(self._buddies, buddy_id)
        if buddy is None:
            return False
        following = not buddy.is_following
        delta = 1 if following else -1
        _replace_by_id(
            self._buddies,
            replace(
                buddy,
                is_following=following,
                followers_count=max(buddy.followers_count + delta, 0),
            ),
        )
        self._changed()
        return True

    def create_post(
        self,
        content: str,
        images: Sequence[str] = (),
        food_records: Sequence[FoodEntry] = (),
    ) -> FoodPost | None:
        if self._profile is None:
            return None
        post = FoodPost(
            author_id=self._profile.id,
            content=content,
            images=tuple(images),
            food_records=tuple(food_records),
            timestamp=self._aware(self.clock()),
        )
        self._posts.insert(0, post)
        self._my_posts.insert(0, post)
        self._changed()
        return post

    def share_food(
        self, entry: FoodEntry, caption: str, hashtags: Iterable[str] = ()
    ) -> FoodPost | None:
        tags = [tag.lstrip("#") for tag in hashtags if tag.strip("# ")]
        content = caption
        if tags:
            content = f"{caption} #" + " #".join(tags)
        return self.create_post(content, food_records=[entry])

    # Internals

    def _changed(self, *keys: str) -> None:
        self._persist(keys)
        self._notify()

    def _persist(self, keys: Sequence[str]) -> None:
        with self._dirty_lock:
            pending = set(keys) | self._dirty
        for key in sorted(pending):
            try:
                data = self.gateway.encode(key, self._collection_value(key))
            except Exception:
                _logger.exception("Failed to serialize %s", key)
                self._mark_dirty(key)
                continue
            self.dispatcher.submit(key, lambda key=key, data=data: self._write(key, data))

    def _write(self, key: str, data: bytes) -> None:
        try:
            self.gateway.write(key, data)
        except Exception:
            _logger.exception("Failed to persist %s; will retry on next change", key)
            self._mark_dirty(key)
            return
        with self._dirty_lock:
            self._dirty.discard(key)

    def _mark_dirty(self, key: str) -> None:
        with self._dirty_lock:
            self._dirty.add(key)

    def _collection_value(self, key: str) -> object:
        values: dict[str, object] = {
            FOOD_ENTRIES: self._food,
            EXERCISE_ENTRIES: self._exercises,
            MOOD_ENTRIES: self._moods,
            WEIGHT_ENTRIES: self._weights,
            HEALTH_GOALS: self._goals,
            USER_PROFILE: self._profile,
            OKR_PROGRESS: self._okr,
            DIET_PLAN: self._diet_plan,
            SUBSCRIPTION: self._subscription,
        }
        return values[key]

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.exception("Tracking listener failed")

    def _aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.timezone)
        return value

    def _local_date(self, value: date | datetime) -> date:
        if isinstance(value, datetime):
            return self._aware(value).astimezone(self.timezone).date()
        return value

    def _day_bounds(self, day: date | datetime) -> tuple[datetime, datetime]:
        local_day = self._local_date(day)
        start = datetime.combine(local_day, time.min, tzinfo=self.timezone)
        end = datetime.combine(
            local_day + timedelta(days=1), time.min, tzinfo=self.timezone
        )
        return start, end

    def _within(self, timestamp: datetime, start: datetime, end: datetime) -> bool:
        return start <= self._aware(timestamp) < end

    def _seed_defaults(self) -> None:
        """Fill in the starter profile, goals, OKR and buddies when absent."""
        now = self._aware(self.clock())
        if self._profile is None:
            # Logged weights outrank the starter weight.
            weight = DEFAULT_PROFILE_WEIGHT_KG
            if self._weights:
                weight = self._weights[0].weight
            self.update_profile(
                UserProfile(
                    nickname="Health Enthusiast",
                    gender=Gender.FEMALE,
                    birthday=now.date().replace(year=now.year - 25, day=1),
                    height=DEFAULT_HEIGHT_CM,
                    weight=weight,
                )
            )
        if not self._goals:
            self._goals = [
                Goal(
                    type=GoalType.WEIGHT_LOSS,
                    target_value=50,
                    current_value=55,
                    unit="kg",
                ),
                Goal(type=GoalType.FITNESS, target_value=10000, unit="steps"),
                Goal(
                    type=GoalType.FAT_LOSS,
                    target_value=20,
                    current_value=25,
                    unit="%",
                ),
            ]
            self._changed(HEALTH_GOALS)
        if self._okr is None:
            quarter = f"{now.year} Q{(now.month - 1) // 3 + 1}"
            self.set_okr(
                OKR(
                    objective="Build a healthy lifestyle",
                    quarter=quarter,
                    key_results=(
                        KeyResult(description="Daily steps", target=10000, unit="steps"),
                        KeyResult(description="Weight lost", target=5, unit="kg"),
                        KeyResult(description="Days logged", target=30, unit="days"),
                    ),
                )
            )
        if not self._buddies:
            self._buddies = [
                FoodBuddy(nickname="Healthy Eater", bio="Focused on everyday healthy food"),
                FoodBuddy(nickname="Lean Queen", bio="Sharing fat-loss tips and recipes"),
                FoodBuddy(nickname="Dietitian Lee", bio="Evidence-based nutrition advice"),
            ]


def _sum(values: Iterable[float]) -> float:
    return float(sum(values, 0.0))


def _find_by_id(items: list[T], item_id: UUID) -> T | None:
    for item in items:
        if item.id == item_id:  # type: ignore[attr-defined]
            return item
    return None


def _replace_by_id(items: list[T], updated: T) -> bool:
    for index, item in enumerate(items):
        if item.id == updated.id:  # type: ignore[attr-defined]
            items[index] = updated
            return True
    return False


def _remove_by_id(items: list[T], item_id: UUID) -> bool:
    for index, item in enumerate(items):
        if item.id == item_id:  # type: ignore[attr-defined]
            del items[index]
            return True
    return False
