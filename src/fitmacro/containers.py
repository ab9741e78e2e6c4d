"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from fitmacro.adapters.openai_chat_client import OpenAIChatClient
from fitmacro.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from fitmacro.adapters.supabase_analysis_repository import SupabaseAnalysisRepository
from fitmacro.adapters.supabase_auth_verifier import SupabaseAuthVerifier
from fitmacro.adapters.supabase_health_record_repository import (
    SupabaseHealthRecordRepository,
)
from fitmacro.config import Settings, has_openai_key
from fitmacro.services.assistant import AssistantService
from fitmacro.services.auth import TokenVerifier
from fitmacro.services.barcode import BarcodeService
from fitmacro.services.longevity import LongevityService
from fitmacro.services.meals import MealAnalysisService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    meal_service: MealAnalysisService
    barcode_service: BarcodeService
    assistant_service: AssistantService
    longevity_service: LongevityService
    token_verifier: TokenVerifier
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    # Without a key every LLM-backed operation answers "Missing OpenAI key".
    chat_client = (
        OpenAIChatClient.create(resolved_settings.openai_api_key)
        if has_openai_key(resolved_settings)
        else None
    )
    catalog = HttpxOpenFoodFactsClient.create(resolved_settings.openfoodfacts_base_url)

    meal_service = MealAnalysisService(
        client=chat_client,
        model=resolved_settings.openai_model,
        fast_model=resolved_settings.openai_fast_model,
    )
    barcode_service = BarcodeService(
        catalog=catalog,
        client=chat_client,
        model=resolved_settings.openai_fast_model,
    )
    assistant_service = AssistantService(
        client=chat_client, model=resolved_settings.openai_fast_model
    )
    longevity_service = LongevityService(
        health_records=SupabaseHealthRecordRepository(supabase_client),
        analyses=SupabaseAnalysisRepository(supabase_client),
        client=chat_client,
        model=resolved_settings.openai_model,
    )

    async def close_resources() -> None:
        await catalog.close()
        if chat_client is not None:
            await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        meal_service=meal_service,
        barcode_service=barcode_service,
        assistant_service=assistant_service,
        longevity_service=longevity_service,
        token_verifier=SupabaseAuthVerifier(supabase_client),
        close_resources=close_resources,
    )
