"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from health_tracker.adapters.file_key_value_store import FileKeyValueStore
from health_tracker.adapters.openai_vision_client import OpenAIVisionClient
from health_tracker.adapters.sample_recognition_provider import (
    SampleRecognitionProvider,
)
from health_tracker.adapters.supabase_key_value_store import SupabaseKeyValueStore
from health_tracker.config import Settings
from health_tracker.services.persistence import (
    BackgroundDispatcher,
    InlineDispatcher,
    InMemoryKeyValueStore,
    KeyValueStore,
    PersistDispatcher,
    PersistenceGateway,
)
from health_tracker.services.recognition import RecognitionProvider
from health_tracker.services.tracking import TrackingStore
from health_tracker.services.vision import VisionRecognitionProvider


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    gateway: PersistenceGateway
    dispatcher: PersistDispatcher
    store: TrackingStore
    recognition_provider: RecognitionProvider
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    gateway = PersistenceGateway(_build_key_value_store(resolved_settings))
    dispatcher: PersistDispatcher
    if resolved_settings.background_persistence:
        dispatcher = BackgroundDispatcher()
    else:
        dispatcher = InlineDispatcher()
    store = TrackingStore.open(
        gateway,
        dispatcher,
        timezone=resolved_settings.zone,
        calorie_target=resolved_settings.daily_calorie_target,
    )

    vision_client: OpenAIVisionClient | None = None
    recognition_provider: RecognitionProvider
    if resolved_settings.recognition_provider == "openai":
        if not resolved_settings.openai_api_key:
            raise ValueError("openai_api_key is required for the openai provider")
        vision_client = OpenAIVisionClient.create(
            resolved_settings.openai_api_key,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        )
        recognition_provider = VisionRecognitionProvider(
            client=vision_client, model=resolved_settings.openai_model
        )
    else:
        recognition_provider = SampleRecognitionProvider(
            delay_seconds=resolved_settings.recognition_delay_seconds
        )

    async def close_resources() -> None:
        if isinstance(dispatcher, BackgroundDispatcher):
            dispatcher.flush()
            dispatcher.close()
        if vision_client is not None:
            await vision_client.close()

    return AppContainer(
        settings=resolved_settings,
        gateway=gateway,
        dispatcher=dispatcher,
        store=store,
        recognition_provider=recognition_provider,
        close_resources=close_resources,
    )


def _build_key_value_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore()
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("supabase_url and supabase_service_key are required")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseKeyValueStore(client, owner=settings.storage_owner)
    return FileKeyValueStore(settings.data_dir)
