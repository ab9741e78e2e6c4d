"""Meal nutrition analysis: classification, bypass and the multi-stage path."""

import logging
from dataclasses import dataclass

from fitmacro.domain.errors import NutritionParseError
from fitmacro.domain.nutrition import (
    ClassificationResult,
    FoodItem,
    IdentificationResult,
    MealAnalysis,
    MealRequest,
    NutritionRecord,
)
from fitmacro.domain.pipeline import StagePolicy, Success
from fitmacro.services.classifier import MealClassifier
from fitmacro.services.cooking import (
    apply_chicken_breast_default,
    describe_food,
    total_raw_weight,
)
from fitmacro.services.llm import (
    ChatClient,
    image_message,
    require_client,
    system_message,
)
from fitmacro.services.parsing import (
    build_complete_nutrition,
    coerce_food_item,
    extract_json,
    extract_quantity_from_text,
    language_instruction,
    normalize_ai_foods,
)
from fitmacro.services.pipeline import run_stage
from fitmacro.services.pizza import PizzaEstimator, mentions_pizza
from fitmacro.services.prompts import (
    AGGREGATE_NUTRITION,
    EXACT_NUTRITION_IMAGE,
    EXACT_NUTRITION_TEXT,
    IDENTIFY_FOODS,
    JSON_ONLY_REMINDER,
    NUTRITION_JSON_SCHEMA,
    NUTRITION_ONLY_SCHEMA,
    REWRITE_SUMMARY,
)

_BYPASS_KINDS = {"branded", "single_food"}

_logger = logging.getLogger(__name__)


@dataclass
class MealAnalysisService:
    """Runs the nutrition pipeline for one meal request."""

    client: ChatClient | None
    model: str
    fast_model: str

    async def analyze(
        self, request: MealRequest, *, classify: bool = True
    ) -> MealAnalysis:
        """Classify the meal, then take the bypass or the multi-stage path."""
        client = require_client(self.client)
        if classify:
            classification = await MealClassifier(
                client=client, model=self.fast_model
            ).classify(request.description)
            if classification.kind in _BYPASS_KINDS:
                _logger.info("Bypass activated for kind=%s", classification.kind)
                return await self._bypass(client, request, classification)
        return await self._multi_stage(client, request)

    async def _bypass(
        self,
        client: ChatClient,
        request: MealRequest,
        classification: ClassificationResult,
    ) -> MealAnalysis:
        quantity = classification.quantity_description
        name = classification.normalized_name
        quantity_text = (
            f"{quantity} {name}"
            if quantity and name
            else request.description or name or "1 serving"
        ).strip()
        prompt = EXACT_NUTRITION_TEXT.render(
            language=language_instruction(request.language),
            schema=NUTRITION_JSON_SCHEMA,
        )

        async def call() -> dict[str, object] | None:
            content = await client.complete(
                model=self.model,
                temperature=0,
                messages=[
                    system_message(prompt),
                    {"role": "assistant", "content": JSON_ONLY_REMINDER},
                    {"role": "user", "content": f"Food to analyze: {quantity_text}"},
                ],
            )
            return extract_json(content)

        outcome = await run_stage("bypass", StagePolicy.FAIL_CLOSED, call)
        if not isinstance(outcome, Success):
            raise NutritionParseError("Failed to parse simple food JSON")
        parsed = outcome.value

        display_name = quantity or name or request.description or "Food"
        model_food = normalize_ai_foods(parsed.get("ai_foods"), display_name)[0]
        summary = parsed.get("ai_summary")
        return MealAnalysis(
            nutrition=build_complete_nutrition(parsed),
            ai_summary=(
                summary
                if isinstance(summary, str) and summary
                else f"Logged: {display_name}".strip()
            ),
            ai_foods=[model_food.model_copy(update={"name": display_name})],
            path="bypass",
        )

    async def _multi_stage(
        self, client: ChatClient, request: MealRequest
    ) -> MealAnalysis:
        identification = await self._identify(client, request)
        _logger.info(
            "Meal summary: %s (%s foods)",
            identification.summary or "(none)",
            len(identification.foods),
        )

        if not request.description.strip() and len(identification.foods) == 1:
            shortcut = await self._single_item_shortcut(
                client, request, identification
            )
            if shortcut is not None:
                return shortcut

        if mentions_pizza(
            request.description,
            identification.summary,
            [food.name for food in identification.foods],
        ):
            _logger.info("Pizza detected, running pizza estimation")
            estimator = PizzaEstimator(client=client, model=self.model)
            pizza = await run_stage(
                "pizza",
                StagePolicy.FAIL_OPEN,
                lambda: estimator.estimate(
                    request.photo_url, request.description, request.language
                ),
            )
            if isinstance(pizza, Success):
                return pizza.value

        nutrition = await self._aggregate(client, request, identification.foods)
        summary = await self._rewrite_summary(
            client, identification.summary, request.language
        )
        foods = identification.foods or normalize_ai_foods(
            [], request.description or "Meal"
        )
        return MealAnalysis(
            nutrition=nutrition,
            ai_summary=summary,
            ai_foods=foods,
            path="multi_stage",
        )

    async def _identify(
        self, client: ChatClient, request: MealRequest
    ) -> IdentificationResult:
        messages = [
            system_message(
                IDENTIFY_FOODS.render(language=language_instruction(request.language))
            ),
            {"role": "user", "content": request.description or "(no description)"},
        ]
        if request.photo_url:
            messages.append(
                image_message(
                    "Analyze this image as part of the meal.", request.photo_url
                )
            )

        async def call() -> IdentificationResult | None:
            content = await client.complete(
                model=self.model, messages=messages, temperature=0
            )
            parsed = extract_json(content)
            if parsed is None:
                return None
            return _identification_from_payload(parsed, request.description)

        outcome = await run_stage(
            "identify",
            StagePolicy.FAIL_OPEN,
            call,
            fallback=IdentificationResult(),
        )
        if isinstance(outcome, Success):
            return outcome.value
        return IdentificationResult()

    async def _single_item_shortcut(
        self,
        client: ChatClient,
        request: MealRequest,
        identification: IdentificationResult,
    ) -> MealAnalysis | None:
        only_food = identification.foods[0]
        label = _quantity_label(only_food, identification.summary, request.description)
        _logger.info("Single item shortcut for %s", label)
        prompt = EXACT_NUTRITION_IMAGE.render(
            language=language_instruction(request.language),
            schema=NUTRITION_JSON_SCHEMA,
        )

        async def call() -> dict[str, object] | None:
            content = await client.complete(
                model=self.model,
                temperature=0,
                messages=[
                    system_message(prompt),
                    {"role": "assistant", "content": JSON_ONLY_REMINDER},
                    {"role": "user", "content": f"Food to analyze: {label}"},
                ],
            )
            return extract_json(content)

        outcome = await run_stage("single_item", StagePolicy.FAIL_OPEN, call)
        if not isinstance(outcome, Success):
            return None
        parsed = outcome.value

        summary = parsed.get("ai_summary")
        model_foods = parsed.get("ai_foods")
        if isinstance(model_foods, list) and model_foods:
            foods = normalize_ai_foods(model_foods, label)
        else:
            foods = [only_food.model_copy(update={"name": label})]
        return MealAnalysis(
            nutrition=build_complete_nutrition(parsed),
            ai_summary=(
                summary
                if isinstance(summary, str) and summary
                else identification.summary or f"Logged: {label}"
            ),
            ai_foods=foods,
            path="image_shortcut",
        )

    async def _aggregate(
        self, client: ChatClient, request: MealRequest, foods: list[FoodItem]
    ) -> NutritionRecord:
        if foods:
            food_list = ", ".join(describe_food(food) for food in foods)
        else:
            food_list = request.description or "(no foods detected)"
        total_weight = total_raw_weight(foods)
        _logger.info("Aggregate food list: %s (total %sg)", food_list, total_weight)
        prompt = AGGREGATE_NUTRITION.render(
            food_list=food_list,
            total_weight=total_weight,
            schema=NUTRITION_ONLY_SCHEMA,
        )

        async def call() -> dict[str, object] | None:
            content = await client.complete(
                model=self.model,
                messages=[system_message(prompt)],
                temperature=0,
                max_tokens=800,
            )
            return extract_json(content)

        outcome = await run_stage("aggregate", StagePolicy.FAIL_CLOSED, call)
        if not isinstance(outcome, Success):
            raise NutritionParseError("Failed to parse nutrition JSON")
        return build_complete_nutrition(outcome.value)

    async def _rewrite_summary(
        self, client: ChatClient, summary: str, language: str
    ) -> str:
        if not summary:
            return summary
        prompt = REWRITE_SUMMARY.render(
            language=language_instruction(language), summary=summary
        )

        async def call() -> str | None:
            content = await client.complete(
                model=self.fast_model,
                messages=[system_message(prompt)],
                temperature=0.3,
            )
            rewritten = content.strip().strip('"').strip()
            return rewritten or None

        outcome = await run_stage(
            "rewrite_summary", StagePolicy.FAIL_OPEN, call, fallback=summary
        )
        if isinstance(outcome, Success):
            return outcome.value
        return summary


def _identification_from_payload(
    parsed: dict[str, object], description: str
) -> IdentificationResult:
    raw_summary = parsed.get("summary")
    summary = raw_summary.strip() if isinstance(raw_summary, str) else ""
    raw_foods = parsed.get("foods")
    foods: list[FoodItem] = []
    if isinstance(raw_foods, list):
        for raw in raw_foods:
            item = coerce_food_item(raw, "Food")
            if item is not None:
                foods.append(
                    apply_chicken_breast_default(item, description, summary)
                )
    return IdentificationResult(foods=foods, summary=summary)


def _quantity_label(food: FoodItem, summary: str, description: str) -> str:
    """Prefer an explicit quantity from text over the estimated weight."""
    explicit = (
        extract_quantity_from_text(summary)
        or extract_quantity_from_text(food.name)
        or extract_quantity_from_text(description)
    )
    if explicit:
        prefix = f"{explicit} "
    elif food.weight_g:
        prefix = f"{food.weight_g} g "
    elif food.quantity:
        prefix = f"{food.quantity:g} "
    else:
        prefix = ""
    return f"{prefix}{food.name}".strip() or "1 serving"
