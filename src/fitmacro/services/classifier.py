"""Stage 0: decide which analysis path a meal description takes."""

import logging
from dataclasses import dataclass

from fitmacro.domain.nutrition import ClassificationResult
from fitmacro.domain.pipeline import StagePolicy, Success
from fitmacro.services.llm import ChatClient, system_message
from fitmacro.services.parsing import extract_json
from fitmacro.services.pipeline import run_stage
from fitmacro.services.prompts import CLASSIFY_MEAL, JSON_ONLY_REMINDER

_KINDS = {"branded", "single_food", "mixed_meal"}

_logger = logging.getLogger(__name__)


@dataclass
class MealClassifier:
    """Classifies free text into branded, single_food or mixed_meal."""

    client: ChatClient
    model: str

    async def classify(self, description: str) -> ClassificationResult:
        """Classify a description; every failure becomes mixed_meal."""
        text = description.strip()
        fallback = ClassificationResult(
            kind="mixed_meal",
            normalized_name=description,
            quantity_description=description or None,
        )
        if not text:
            return fallback

        async def call() -> ClassificationResult | None:
            content = await self.client.complete(
                model=self.model,
                temperature=0,
                messages=[
                    system_message(CLASSIFY_MEAL.render()),
                    {"role": "assistant", "content": JSON_ONLY_REMINDER},
                    {"role": "user", "content": text},
                ],
            )
            return _parse_classification(content, description)

        outcome = await run_stage(
            "classify", StagePolicy.FAIL_OPEN, call, fallback=fallback
        )
        result = outcome.value if isinstance(outcome, Success) else fallback
        _logger.info(
            "Classified meal: kind=%s name=%s quantity=%s",
            result.kind,
            result.normalized_name,
            result.quantity_description,
        )
        return result


def _parse_classification(
    content: str, description: str
) -> ClassificationResult | None:
    parsed = extract_json(content)
    if parsed is None:
        return None
    kind = parsed.get("kind")
    if not isinstance(kind, str) or kind not in _KINDS:
        return None
    name = parsed.get("normalized_name")
    quantity = parsed.get("quantity_description")
    return ClassificationResult(
        kind=kind,
        normalized_name=(
            name.strip() if isinstance(name, str) and name.strip() else description
        ),
        quantity_description=(
            quantity.strip() if isinstance(quantity, str) and quantity.strip() else None
        ),
    )
