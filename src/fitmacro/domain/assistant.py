"""Assistant chat request model."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PreferenceField = Literal["allergies", "eating_mode", "cooking_style", "cultural_foods"]


class AssistantRequest(BaseModel):
    """Coach or meal-plan chat turn sent by the app."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    message: str | None = None
    history: list[dict[str, object]] = Field(default_factory=list)
    language: str | None = None
    app_language: str | None = None
    user_age: float | None = None
    is_photo: bool = False
    photo_safety_data: Any = None
    user_allergies: str | None = None
    user_profile: dict[str, object] | None = None
    profile: dict[str, object] | None = None
    user_preferences: dict[str, object] | None = None
    preferences: dict[str, object] | None = None
    previous_meal_plan: Any = None
    previous_plan: Any = None
    mode: str | None = None
    targets: dict[str, object] | None = None

    @property
    def is_meal_plan_mode(self) -> bool:
        """True when the app asked for a structured meal plan."""
        return self.mode == "meal_plan"

    @property
    def effective_language(self) -> str | None:
        """Explicit language, else the app language."""
        return self.language or self.app_language

    @property
    def effective_profile(self) -> dict[str, object] | None:
        """Profile under either field name."""
        return self.user_profile if self.user_profile is not None else self.profile

    @property
    def effective_preferences(self) -> dict[str, object]:
        """Preferences under either field name, empty when absent."""
        if self.user_preferences is not None:
            return self.user_preferences
        return self.preferences or {}

    @property
    def effective_previous_plan(self) -> object | None:
        """Previous plan under either field name."""
        if self.previous_meal_plan is not None:
            return self.previous_meal_plan
        return self.previous_plan
