"""Fitness coach chat and the meal-plan conversation."""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from fitmacro.domain.assistant import AssistantRequest, PreferenceField
from fitmacro.services.llm import (
    ChatClient,
    ChatMessage,
    require_client,
    system_message,
)
from fitmacro.services.parsing import extract_json, round_half_up, to_number
from fitmacro.services.prompts import (
    COACH_CHAT,
    DAILY_NUTRITION_RULES,
    DAILY_TARGETS,
    MEAL_PLAN_CHAT,
    USER_PROFILE,
)

MAX_NON_ALLERGY_QUESTIONS = 5

REQUIRED_PREFERENCES: tuple[PreferenceField, ...] = (
    "allergies",
    "eating_mode",
    "cooking_style",
    "cultural_foods",
)

_MEAL_PLAN_INTENT_RE = re.compile(
    r"meal plan|diet plan|what should i eat|cut plan|bulk plan|macro plan|program|"
    r"plan|برنامه غذایی|رژیم|چی بخورم|برام برنامه غذایی|"
    r"غذا چی بخورم|کاهش وزن|"
    r"افزایش وزن|کات|بالک",
    re.IGNORECASE,
)
ALLERGY_MATCHERS = (
    "allerg",
    "alerg",
    "allergie",
    "alerji",
    "过敏",
    "アレルギ",
    "알레르기",
    "حساسیت",
)
_QUESTION_MARKS = ("?", "؟")

ASKED_FIELD_RULES: list[tuple[str, Callable[[str], bool]]] = [
    ("allergies", lambda text: "allerg" in text),
    (
        "eating_mode",
        lambda text: any(
            word in text
            for word in ("eating mode", "diet", "omnivore", "vegetarian", "vegan")
        ),
    ),
    ("cooking_style", lambda text: "cooking style" in text or "cook" in text),
    ("protein_gap", lambda text: "protein" in text and "gap" in text),
    (
        "cultural_foods",
        lambda text: any(
            word in text
            for word in (
                "cultural",
                "cuisine",
                "middle eastern",
                "mediterranean",
                "asian",
            )
        ),
    ),
]

# (field, lower bound, upper bound)
TARGET_BOUNDS: tuple[tuple[str, int, int], ...] = (
    ("calories", 100, 10000),
    ("protein", 1, 500),
    ("carbs", 1, 1000),
    ("fat", 1, 300),
)

FORCE_PLAN_MESSAGE = (
    "All required questions are answered. Do NOT ask any more questions. "
    "Output the FINAL meal plan JSON now."
)
SWITCH_MODE_MESSAGE = (
    "User is asking for a meal plan. Respond briefly that meal plans are only "
    "available in meal_plan mode and ask them to switch modes."
)

_logger = logging.getLogger(__name__)


def detect_meal_plan_intent(text: str | None) -> bool:
    """True when a chat message asks for a meal or diet plan."""
    if not text:
        return False
    return _MEAL_PLAN_INTENT_RE.search(text) is not None


def _assistant_texts(history: list[dict[str, object]]) -> list[str]:
    return [
        str(item.get("content") or "")
        for item in history
        if item.get("role") == "assistant"
    ]


def _is_question(text: str) -> bool:
    return any(mark in text for mark in _QUESTION_MARKS)


def asked_preference_fields(history: list[dict[str, object]]) -> set[str]:
    """Preference topics the assistant already raised in earlier turns."""
    text = " ".join(_assistant_texts(history)).lower()
    if not text:
        return set()
    return {field for field, matches in ASKED_FIELD_RULES if matches(text)}


def assistant_question_count(history: list[dict[str, object]]) -> int:
    """Number of assistant turns that asked something."""
    return sum(1 for text in _assistant_texts(history) if _is_question(text))


def allergy_question_count(history: list[dict[str, object]]) -> int:
    """Number of assistant questions about allergies, in any supported language."""
    return sum(
        1
        for text in _assistant_texts(history)
        if _is_question(text)
        and any(word in text.lower() for word in ALLERGY_MATCHERS)
    )


def targets_instruction(targets: dict[str, object] | None) -> str | None:
    """Exact daily targets prompt, or None when any target is implausible."""
    if not targets:
        return None
    values: dict[str, int] = {}
    for name, low, high in TARGET_BOUNDS:
        value = to_number(targets.get(name), float("nan"))
        if not low <= value <= high:
            return None
        values[name] = round_half_up(value)
    return DAILY_TARGETS.render(**values)


def profile_instruction(profile: dict[str, object] | None) -> str:
    """Profile prompt block, empty when the app sent no profile."""
    if not profile:
        return ""
    return USER_PROFILE.render(
        **{
            name: _or_unknown(profile.get(name))
            for name in ("height", "weight", "gender", "goal")
        }
    )


def reply_language_instruction(language: str | None) -> str:
    """Reply-language line, empty when no language was sent."""
    if not language:
        return ""
    return (
        f"Respond in {language}. If the user writes in another language, "
        "respond in the user's language instead."
    )


def combined_allergies(request: AssistantRequest) -> str:
    """Device allergies, else the saved allergies preference."""
    if request.user_allergies and request.user_allergies.strip():
        return request.user_allergies.strip()
    saved = request.effective_preferences.get("allergies")
    if saved is None or saved == "":
        return ""
    return saved if isinstance(saved, str) else json.dumps(saved)


@dataclass(frozen=True)
class PreferenceState:
    """Where a meal-plan conversation stands on collecting preferences."""

    missing: list[str]
    missing_not_asked: list[str]
    total_questions: int
    non_allergy_questions: int
    allergies: str

    @property
    def allows_more_questions(self) -> bool:
        """False once the optional question budget is spent."""
        return self.non_allergy_questions < MAX_NON_ALLERGY_QUESTIONS

    @property
    def should_force_plan(self) -> bool:
        """Allergies are known and nothing else is worth asking."""
        return bool(self.allergies) and (
            not self.missing_not_asked or not self.allows_more_questions
        )


def preference_state(request: AssistantRequest) -> PreferenceState:
    """Work out which preferences are still missing and unasked."""
    allergies = combined_allergies(request)
    preferences = request.effective_preferences
    missing = [
        field
        for field in REQUIRED_PREFERENCES
        if (
            not allergies
            if field == "allergies"
            else preferences.get(field) in (None, "")
        )
    ]
    asked = asked_preference_fields(request.history)
    total = assistant_question_count(request.history)
    non_allergy = max(0, total - allergy_question_count(request.history))
    allows_more = non_allergy < MAX_NON_ALLERGY_QUESTIONS
    missing_not_asked = [
        field
        for field in missing
        if field == "allergies" or (allows_more and field not in asked)
    ]
    return PreferenceState(
        missing=missing,
        missing_not_asked=missing_not_asked,
        total_questions=total,
        non_allergy_questions=non_allergy,
        allergies=allergies,
    )


@dataclass
class AssistantService:
    """Builds the chat transcript and returns a text reply or a meal plan."""

    client: ChatClient | None
    model: str

    def build_messages(
        self, request: AssistantRequest, today: str | None = None
    ) -> list[ChatMessage]:
        """Assemble system prompts, history and the user turn."""
        state = preference_state(request)
        language = reply_language_instruction(request.effective_language)
        if request.is_meal_plan_mode:
            previous_plan = request.effective_previous_plan
            prompt = MEAL_PLAN_CHAT.render(
                language=language,
                profile=profile_instruction(request.effective_profile),
                today=today or datetime.now(UTC).date().isoformat(),
                preferences=json.dumps(request.effective_preferences),
                allergies=state.allergies or "none provided",
                previous_plan=(
                    f"Previous meal plan: {json.dumps(previous_plan)}"
                    if previous_plan is not None
                    else "No previous meal plan provided."
                ),
                missing=", ".join(state.missing) or "none",
                missing_not_asked=", ".join(state.missing_not_asked) or "none",
                non_allergy_questions=state.non_allergy_questions,
                total_questions=state.total_questions,
            )
            nutrition = targets_instruction(request.targets)
        else:
            prompt = COACH_CHAT.render(
                language=language,
                profile=profile_instruction(request.user_profile),
            )
            nutrition = None

        messages = [
            system_message(prompt),
            system_message(nutrition or DAILY_NUTRITION_RULES.render()),
        ]
        if request.is_meal_plan_mode and state.should_force_plan:
            messages.append(system_message(FORCE_PLAN_MESSAGE))
        if not request.is_meal_plan_mode and detect_meal_plan_intent(request.message):
            messages.append(system_message(SWITCH_MODE_MESSAGE))
        if state.allergies:
            messages.append(
                system_message(
                    f"User allergies: {state.allergies}. Avoid these foods and "
                    "remind the user to double-check ingredients."
                )
            )
        messages.extend(request.history)
        if request.is_photo:
            messages.append(
                {
                    "role": "user",
                    "content": "User uploaded a fitness photo. Safety data: "
                    f"{json.dumps(request.photo_safety_data)}",
                }
            )
        else:
            messages.append({"role": "user", "content": request.message or ""})

        _logger.info(
            "Assistant turn: meal_plan=%s missing=%s force_plan=%s",
            request.is_meal_plan_mode,
            state.missing_not_asked,
            state.should_force_plan,
        )
        return messages

    async def reply(self, request: AssistantRequest) -> dict[str, object]:
        """Return the model's JSON object when it sent one, else a text reply."""
        client = require_client(self.client)
        content = await client.complete(
            model=self.model,
            messages=self.build_messages(request),
            temperature=0.6,
        )
        parsed = extract_json(content)
        if parsed is not None:
            return parsed
        return {"reply": content}


def _or_unknown(value: object) -> str:
    return "unknown" if value is None else str(value)
