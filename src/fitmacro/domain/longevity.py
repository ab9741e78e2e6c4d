"""Models for face and body wellness analysis."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

FaceFatEstimate = Literal["low", "medium", "high"]
AnalysisSource = Literal["vision_ai", "placeholder"]

JsonObject = dict[str, object]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExercisePlan(_CamelModel):
    """Seven day lines (Mon..Sun) and four weekly progression lines."""

    one_week: list[str]
    one_month: list[str]


class FaceMeasurements(_CamelModel):
    """Per-feature face scores, 0..100."""

    potential: int
    jawline: int
    eye_area: int
    cheekbones: int
    symmetry: int
    facial_thirds: int
    skin_quality: int


class FaceSuggestions(_CamelModel):
    """Three short suggestions per area."""

    skin: list[str]
    jawline: list[str]
    training: list[str]
    routine: list[str]


class FaceAnalysis(_CamelModel):
    """Face analysis result."""

    jawline_index: int
    skin_clarity_index: int
    face_fat_estimate: FaceFatEstimate
    overall_score: int
    measurements: FaceMeasurements
    suggestions: FaceSuggestions
    exercise_plan: ExercisePlan
    notes: list[str]


class BodyAnalysis(_CamelModel):
    """Body analysis result."""

    body_fat_range_estimate: str
    posture_score: int
    muscle_definition_score: int
    exercise_plan: ExercisePlan
    notes: list[str]


class AnalyzeRequest(_CamelModel):
    """Face or body analysis request body."""

    image_url: NonEmptyStr
    today: JsonObject
    history: list[JsonObject]


class CoachRequest(_CamelModel):
    """Longevity coach question."""

    question: NonEmptyStr
    today: JsonObject
    history: list[JsonObject]
    messages: list[JsonObject]
