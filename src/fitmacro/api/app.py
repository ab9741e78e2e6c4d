"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fitmacro.api.longevity import router as longevity_router
from fitmacro.api.models import BarcodeRequestBody, MealRequestBody
from fitmacro.app_logging import configure_logging
from fitmacro.containers import AppContainer
from fitmacro.domain.assistant import AssistantRequest
from fitmacro.domain.barcode import BarcodeRejection
from fitmacro.domain.errors import LlmUnavailableError, NutritionParseError
from fitmacro.domain.nutrition import FoodItem, MealAnalysis
from fitmacro.services.cooking import describe_food


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(longevity_router)

    @app.exception_handler(RequestValidationError)
    async def invalid_payload(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected payload: %s", exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid payload"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = (
            "Method not allowed"
            if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
            else exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(NutritionParseError)
    async def nutrition_parse_error(
        _request: Request, exc: NutritionParseError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )

    @app.exception_handler(LlmUnavailableError)
    async def llm_unavailable(
        _request: Request, _exc: LlmUnavailableError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Missing OpenAI key"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, _exc: Exception) -> JSONResponse:
        logger.exception("%s %s failed", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/new")
    async def analyze_meal(
        body: MealRequestBody, request: Request
    ) -> dict[str, object]:
        """Classify the meal and run the bypass or multi-stage pipeline."""
        state_container: AppContainer = request.app.state.container
        analysis = await state_container.meal_service.analyze(body.to_request())
        logger.info("Meal analyzed via %s", analysis.path)
        return analysis.to_response()

    @app.post("/api/test")
    async def analyze_meal_multi_stage(
        body: MealRequestBody, request: Request
    ) -> dict[str, object]:
        """Run the multi-stage pipeline without classification."""
        state_container: AppContainer = request.app.state.container
        analysis = await state_container.meal_service.analyze(
            body.to_request(), classify=False
        )
        return analysis.to_response()

    @app.post("/api/chat")
    async def analyze_meal_legacy(
        body: MealRequestBody, request: Request
    ) -> dict[str, object]:
        """Multi-stage analysis in the older status/meal_description shape."""
        state_container: AppContainer = request.app.state.container
        analysis = await state_container.meal_service.analyze(
            body.to_request(), classify=False
        )
        return _legacy_chat_response(analysis)

    @app.api_route("/api/barcode", methods=["GET", "POST"])
    async def barcode_lookup(request: Request) -> JSONResponse:
        """Resolve a barcode from the query string or the JSON body."""
        state_container: AppContainer = request.app.state.container
        barcode = request.query_params.get("barcode")
        if not barcode and request.method == "POST":
            barcode = await _barcode_from_body(request)
        if not barcode:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing barcode parameter",
            )
        barcode = barcode.strip()
        if not (barcode.isascii() and barcode.isdigit()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid barcode",
            )
        result = await state_container.barcode_service.lookup(barcode)
        if isinstance(result, BarcodeRejection):
            return JSONResponse(content=result.model_dump(exclude_none=True))
        return JSONResponse(content=result.model_dump(by_alias=True))

    @app.post("/api/aiassistant")
    async def assistant(body: AssistantRequest, request: Request) -> dict[str, object]:
        """Coach chat or meal-plan conversation turn."""
        if not body.message and not body.is_photo:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No message provided.",
            )
        state_container: AppContainer = request.app.state.container
        return await state_container.assistant_service.reply(body)

    return app


async def _barcode_from_body(request: Request) -> str | None:
    try:
        payload = await request.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        body = BarcodeRequestBody.model_validate(payload)
    except ValidationError:
        return None
    return str(body.barcode) if body.barcode not in (None, "") else None


def _legacy_food_label(food: FoodItem) -> str:
    if food.unit == "piece":
        return describe_food(food)
    return f"{food.weight_g}g {food.name}"


def _legacy_chat_response(analysis: MealAnalysis) -> dict[str, object]:
    """Shape kept for app builds that still call the chat endpoint."""
    ingredients = ", ".join(_legacy_food_label(food) for food in analysis.ai_foods)
    return {
        "status": "success",
        "meal_description": ingredients or analysis.ai_summary or "Meal analyzed",
        "nutrition": analysis.nutrition.model_dump(by_alias=True),
    }
