"""Face and body wellness analysis with a deterministic placeholder fallback."""

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal, Protocol

from fitmacro.domain.longevity import (
    AnalysisSource,
    BodyAnalysis,
    ExercisePlan,
    FaceAnalysis,
    FaceFatEstimate,
    FaceMeasurements,
    FaceSuggestions,
    JsonObject,
)
from fitmacro.domain.pipeline import StagePolicy, Success
from fitmacro.services.llm import ChatClient, system_message
from fitmacro.services.parsing import extract_json, round_half_up, to_number
from fitmacro.services.pipeline import run_stage
from fitmacro.services.prompts import BODY_VISION, FACE_VISION

AnalysisField = Literal["face_analyze", "body_analyze"]

_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619
_UINT32_MAX = 0xFFFFFFFF
_DATE_KEY_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_DATE_KEY_FIELDS = ("date", "recordDate", "todayDate", "isoDate")
_RANGE_LOWER_RE = re.compile(r"(\d+)")
_DEFAULT_HEALTH_SCORE = 70
_PLACEHOLDER_NOTE = (
    "Deterministic placeholder analysis generated from current input context."
)

_logger = logging.getLogger(__name__)


class HealthRecordRepository(Protocol):
    """Read access to a user's per-day health record."""

    def get_health_record(self, user_id: str, date_key: str) -> JsonObject | None:
        """Return the health record for the day, if any."""


class AnalysisRepository(Protocol):
    """Per-user, per-day analysis storage."""

    def merge_analysis(
        self, user_id: str, date_key: str, field: AnalysisField, payload: JsonObject
    ) -> None:
        """Write one analysis column, leaving the others untouched."""


def stable_stringify(value: object) -> str:
    """Serialize with sorted object keys so equal inputs serialize equally."""
    if value is None:
        return "null"
    if isinstance(value, dict):
        entries = sorted(value.items(), key=lambda item: str(item[0]))
        return (
            "{"
            + ",".join(
                f"{json.dumps(str(key), ensure_ascii=False)}:{stable_stringify(val)}"
                for key, val in entries
            )
            + "}"
        )
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(stable_stringify(entry) for entry in value) + "]"
    return json.dumps(value, ensure_ascii=False, default=str)


def hash32(value: str) -> int:
    """32-bit FNV-1a over UTF-16 code units."""
    hashed = _FNV_OFFSET
    data = value.encode("utf-16-le")
    for index in range(0, len(data), 2):
        hashed ^= data[index] | (data[index + 1] << 8)
        hashed = (hashed * _FNV_PRIME) & _UINT32_MAX
    return hashed


def score_from_seed(seed: str, low: int, high: int) -> int:
    """Map a seed onto an integer in [low, high]."""
    ratio = hash32(seed) / _UINT32_MAX
    return _clamp(low + round_half_up((high - low) * ratio), low, high)


def face_fat_estimate(combined: int) -> FaceFatEstimate:
    """Bucket the jawline/skin composite into a face fat tendency."""
    if combined >= 72:
        return "low"
    if combined >= 52:
        return "medium"
    return "high"


def get_date_key(today: JsonObject) -> str:
    """Return the first YYYY-MM-DD date in the payload, else today's UTC date."""
    for name in _DATE_KEY_FIELDS:
        candidate = today.get(name)
        if isinstance(candidate, str) and _DATE_KEY_RE.fullmatch(candidate):
            return candidate
    return datetime.now(UTC).date().isoformat()


def computed_context(today: JsonObject, health_record: JsonObject | None) -> JsonObject:
    """Return the computed block from today's payload or the stored record."""
    computed = today.get("computed")
    if isinstance(computed, dict):
        return computed
    if health_record is not None and isinstance(health_record.get("computed"), dict):
        return health_record["computed"]
    return {}


def health_score(today: JsonObject, health_record: JsonObject | None) -> int:
    """Return the day's health score, 70 when absent."""
    raw = to_number(computed_context(today, health_record).get("healthScore"))
    return _clamp(round_half_up(raw or _DEFAULT_HEALTH_SCORE), 0, 100)


def build_face_exercise_plan(
    fat_estimate: FaceFatEstimate, jawline_index: int, skin_clarity_index: int
) -> ExercisePlan:
    """Seven-day and four-week plan keyed on face fat, jawline and skin."""
    if fat_estimate == "high":
        cardio = "30 min zone-2 cardio"
        month_focus = "Week 1: build a daily step baseline of 8k and steady meals."
    elif fat_estimate == "medium":
        cardio = "25 min brisk walk"
        month_focus = "Week 1: hold a small calorie deficit and steady sodium."
    else:
        cardio = "20 min easy cardio"
        month_focus = "Week 1: keep maintenance calories and protein at every meal."
    neck = (
        "chin tucks 3x15, neck curls 3x12"
        if jawline_index < 60
        else "chin tucks 2x15, mewing holds 3x60s"
    )
    skin = (
        "evening wind-down 15 min, 2 L water"
        if skin_clarity_index < 60
        else "sunlight walk 10 min, 2 L water"
    )
    one_week = [
        f"Mon: {cardio}, {neck}, squats 3x10, plank 3x40s",
        f"Tue: push-ups 3x12, rows 3x12, {neck}, {skin}",
        f"Wed: {cardio}, lunges 3x10, face pulls 3x15, dead bug 3x10",
        f"Thu: {neck}, glute bridges 3x15, band pull-aparts 3x20, {skin}",
        f"Fri: {cardio}, goblet squats 3x10, push-ups 3x12, side plank 3x30s",
        f"Sat: mobility flow 20 min, {neck}, walk 45 min, {skin}",
        f"Sun: rest, stretching 15 min, breathing drills 5 min, {skin}",
    ]
    one_month = [
        month_focus,
        "Week 2: add one set to every strength movement.",
        "Week 3: extend cardio by 5 min per session and keep neck work daily.",
        "Week 4: retest photos in the same light and adjust the plan.",
    ]
    return ExercisePlan(one_week=one_week, one_month=one_month)


def build_face_suggestions(
    fat_estimate: FaceFatEstimate,
    jawline_index: int,
    skin_clarity_index: int,
    health: int,
) -> FaceSuggestions:
    """Three suggestions per area chosen by threshold branches."""
    if skin_clarity_index < 60:
        skin = [
            "Cleanse gently twice a day.",
            "Use daily sunscreen.",
            "Cut late-night sugar and alcohol.",
        ]
    else:
        skin = [
            "Keep daily sunscreen use.",
            "Improve sleep consistency.",
            "Hydrate earlier in day.",
        ]
    if fat_estimate == "high":
        jawline = [
            "Aim gradual body fat reduction.",
            "Keep sodium consistent day to day.",
            "Limit liquid calories.",
        ]
    elif jawline_index < 60:
        jawline = [
            "Improve neck/posture alignment.",
            "Practice chin tucks daily.",
            "Keep tongue posture on the palate.",
        ]
    else:
        jawline = [
            "Maintain sodium consistency.",
            "Improve neck/posture alignment.",
            "Keep body fat stable.",
        ]
    if fat_estimate == "high":
        training = [
            "Add 3 zone-2 cardio sessions weekly.",
            "Strength train 3 times weekly.",
            "Walk 8-10k steps daily.",
        ]
    else:
        training = [
            "Strength train 3-4 times weekly.",
            "Add 2 zone-2 cardio sessions.",
            "Increase daily step count.",
        ]
    if health < 60:
        routine = [
            "Fix wake and bed times.",
            "Protein at every meal.",
            "Log meals daily for a week.",
        ]
    else:
        routine = [
            "AM sunlight + hydration.",
            "Protein-focused meals.",
            "Evening wind-down and fixed bedtime.",
        ]
    return FaceSuggestions(
        skin=skin, jawline=jawline, training=training, routine=routine
    )


def build_face_analysis(
    uid: str,
    image_url: str,
    today: JsonObject,
    history: list[JsonObject],
    health_record: JsonObject | None,
) -> FaceAnalysis:
    """Deterministic face scores seeded by the request context."""
    seed = _seed_base(uid, image_url, today, history, health_record, "face")
    jawline_index = score_from_seed(f"{seed}|jawline", 38, 92)
    skin_clarity_index = score_from_seed(f"{seed}|skin", 42, 94)
    eye_area = score_from_seed(f"{seed}|eyes", 40, 92)
    cheekbones = score_from_seed(f"{seed}|cheekbones", 38, 90)
    symmetry = score_from_seed(f"{seed}|symmetry", 45, 95)
    facial_thirds = score_from_seed(f"{seed}|thirds", 42, 92)
    combined = round_half_up((jawline_index + skin_clarity_index) / 2)
    fat_estimate = face_fat_estimate(combined)
    health = health_score(today, health_record)

    potential = _clamp(round_half_up(combined * 0.7 + health * 0.3), 0, 100)
    measurements = FaceMeasurements(
        potential=potential,
        jawline=jawline_index,
        eye_area=eye_area,
        cheekbones=cheekbones,
        symmetry=symmetry,
        facial_thirds=facial_thirds,
        skin_quality=skin_clarity_index,
    )
    return FaceAnalysis(
        jawline_index=jawline_index,
        skin_clarity_index=skin_clarity_index,
        face_fat_estimate=fat_estimate,
        overall_score=_overall_score(measurements),
        measurements=measurements,
        suggestions=build_face_suggestions(
            fat_estimate, jawline_index, skin_clarity_index, health
        ),
        exercise_plan=build_face_exercise_plan(
            fat_estimate, jawline_index, skin_clarity_index
        ),
        notes=[
            _PLACEHOLDER_NOTE,
            f"Jawline signal: {jawline_index}/100, "
            f"skin clarity signal: {skin_clarity_index}/100.",
            f"Estimated face fat tendency: {fat_estimate}.",
        ],
    )


def body_fat_is_high(body_fat_range: str) -> bool:
    """True when the range starts at 22% or more."""
    match = _RANGE_LOWER_RE.search(body_fat_range)
    return match is not None and int(match.group(1)) >= 22


def build_body_exercise_plan(
    posture_score: int,
    muscle_definition_score: int,
    body_fat_range: str,
    health: int,
) -> ExercisePlan:
    """Seven-day and four-week plan for fat loss, recomposition or performance."""
    high_fat = body_fat_is_high(body_fat_range)
    if high_fat:
        conditioning = "intervals 10x(30s hard/60s easy)"
        focus = "fat-loss"
    elif muscle_definition_score >= 70:
        conditioning = "sprints 6x20s"
        focus = "athletic performance"
    else:
        conditioning = "zone-2 bike 25 min"
        focus = "recomposition"
    sets = 2 if health < 60 else 3
    posture = (
        "face pulls 3x15, wall slides 2x12"
        if posture_score < 62
        else "band pull-aparts 2x20"
    )
    one_week = [
        f"Mon: squats {sets}x8, bench press {sets}x8, rows {sets}x10, {posture}",
        f"Tue: {conditioning}, plank 3x45s, dead bug 3x10, walk 30 min",
        f"Wed: deadlifts {sets}x5, overhead press {sets}x8, "
        f"pull-ups {sets}x6, {posture}",
        f"Thu: {conditioning}, lunges 3x10, side plank 3x30s, mobility 10 min",
        f"Fri: front squats {sets}x8, incline press {sets}x10, "
        f"chin-ups {sets}x8, {posture}",
        f"Sat: walk 45 min, hip thrusts 3x12, farmer carries 4x40m, "
        "stretching 10 min",
        "Sun: rest, mobility flow 15 min, breathing drills 5 min, "
        "easy walk 20 min",
    ]
    one_month = [
        f"Week 1: learn the {focus} template and log every session.",
        "Week 2: add one set to the main lifts.",
        "Week 3: extend conditioning by 5 min"
        + (" and keep posture drills daily." if posture_score < 62 else "."),
        "Week 4: deload volume by a third and retest photos.",
    ]
    return ExercisePlan(one_week=one_week, one_month=one_month)


def build_body_analysis(
    uid: str,
    image_url: str,
    today: JsonObject,
    history: list[JsonObject],
    health_record: JsonObject | None,
) -> BodyAnalysis:
    """Deterministic body scores seeded by the request context."""
    seed = _seed_base(uid, image_url, today, history, health_record, "body")
    posture_score = score_from_seed(f"{seed}|posture", 40, 93)
    muscle_definition_score = score_from_seed(f"{seed}|muscle", 35, 91)
    body_signal = round_half_up(
        (100 - posture_score + 100 - muscle_definition_score) / 2
    )
    if body_signal < 25:
        body_fat_range = "10-16%"
    elif body_signal < 45:
        body_fat_range = "14-20%"
    elif body_signal < 65:
        body_fat_range = "18-24%"
    else:
        body_fat_range = "22-30%"

    return BodyAnalysis(
        body_fat_range_estimate=body_fat_range,
        posture_score=posture_score,
        muscle_definition_score=muscle_definition_score,
        exercise_plan=build_body_exercise_plan(
            posture_score,
            muscle_definition_score,
            body_fat_range,
            health_score(today, health_record),
        ),
        notes=[
            _PLACEHOLDER_NOTE,
            f"Posture score: {posture_score}/100, "
            f"muscle definition score: {muscle_definition_score}/100.",
            f"Estimated body fat range: {body_fat_range}.",
        ],
    )


def build_coach_reply(
    question: str,
    today: JsonObject,
    history: list[JsonObject],
    messages: list[JsonObject],
    health_record: JsonObject | None,
) -> str:
    """Short templated coach note built from today's snapshot."""
    calories = _snapshot_value("calories", today, health_record)
    protein = _snapshot_value("protein", today, health_record)
    if calories is not None and protein is not None:
        snapshot = (
            f"Today snapshot: calories {round_half_up(calories)}, "
            f"protein {round_half_up(protein)}g."
        )
    else:
        snapshot = "Today snapshot is partial, so I am focusing on consistent habits."
    return " ".join(
        [
            f"Coach note: {question.strip()}",
            snapshot,
            f"Context used: {len(history)} history items "
            f"and {len(messages)} message items.",
            "Next step: keep hydration steady and log your next meal "
            "for tighter recommendations.",
        ]
    )


def parse_face_vision(
    parsed: JsonObject, today: JsonObject, health_record: JsonObject | None
) -> FaceAnalysis:
    """Clamp a vision answer and back-fill anything missing."""
    jawline_index = _clamped_score(parsed.get("jawlineIndex"), 0)
    skin_clarity_index = _clamped_score(parsed.get("skinClarityIndex"), 0)
    fat = parsed.get("faceFatEstimate")
    fat_estimate: FaceFatEstimate = (
        fat if fat in ("low", "medium", "high") else face_fat_estimate(jawline_index)
    )

    raw_measurements = _as_object(parsed.get("measurements"))
    potential = _clamped_score(
        raw_measurements.get("potential"), (jawline_index + skin_clarity_index) / 2
    )
    eye_area = _clamped_score(
        raw_measurements.get("eyeArea"), (skin_clarity_index + potential) / 2
    )
    cheekbones = _clamped_score(
        raw_measurements.get("cheekbones"), (jawline_index + potential) / 2
    )
    symmetry = _clamped_score(
        raw_measurements.get("symmetry"), (eye_area + cheekbones) / 2
    )
    facial_thirds = _clamped_score(
        raw_measurements.get("facialThirds"), (symmetry + potential) / 2
    )
    skin_quality = _clamped_score(
        raw_measurements.get("skinQuality"), skin_clarity_index
    )
    measurements = FaceMeasurements(
        potential=potential,
        jawline=jawline_index,
        eye_area=eye_area,
        cheekbones=cheekbones,
        symmetry=symmetry,
        facial_thirds=facial_thirds,
        skin_quality=skin_quality,
    )
    overall_score = _clamped_score(
        parsed.get("overallScore"), _weighted_overall(measurements)
    )

    defaults = build_face_suggestions(
        fat_estimate,
        jawline_index,
        skin_clarity_index,
        health_score(today, health_record),
    )
    raw_suggestions = _as_object(parsed.get("suggestions"))
    suggestions = FaceSuggestions(
        skin=_string_list(raw_suggestions.get("skin"), 3) or defaults.skin,
        jawline=_string_list(raw_suggestions.get("jawline"), 3) or defaults.jawline,
        training=_string_list(raw_suggestions.get("training"), 3)
        or defaults.training,
        routine=_string_list(raw_suggestions.get("routine"), 3) or defaults.routine,
    )
    return FaceAnalysis(
        jawline_index=jawline_index,
        skin_clarity_index=skin_clarity_index,
        face_fat_estimate=fat_estimate,
        overall_score=overall_score,
        measurements=measurements,
        suggestions=suggestions,
        exercise_plan=build_face_exercise_plan(
            fat_estimate, jawline_index, skin_clarity_index
        ),
        notes=_string_list(parsed.get("notes"), 4) or ["AI vision analysis complete."],
    )


def parse_body_vision(
    parsed: JsonObject, today: JsonObject, health_record: JsonObject | None
) -> BodyAnalysis:
    """Clamp a vision answer and back-fill the plan when it is incomplete."""
    raw_range = parsed.get("bodyFatRangeEstimate")
    body_fat_range = (
        raw_range.strip()
        if isinstance(raw_range, str) and raw_range.strip()
        else "18-24%"
    )
    posture_score = _clamped_score(parsed.get("postureScore"), 0)
    muscle_definition_score = _clamped_score(parsed.get("muscleDefinitionScore"), 0)
    fallback_plan = build_body_exercise_plan(
        posture_score,
        muscle_definition_score,
        body_fat_range,
        health_score(today, health_record),
    )
    raw_plan = _as_object(parsed.get("exercisePlan"))
    one_week = _string_list(raw_plan.get("oneWeek"), 7)
    one_month = _string_list(raw_plan.get("oneMonth"), 4)
    return BodyAnalysis(
        body_fat_range_estimate=body_fat_range,
        posture_score=posture_score,
        muscle_definition_score=muscle_definition_score,
        exercise_plan=ExercisePlan(
            one_week=one_week if len(one_week) == 7 else fallback_plan.one_week,
            one_month=one_month if len(one_month) == 4 else fallback_plan.one_month,
        ),
        notes=_string_list(parsed.get("notes"), 4)
        or [
            "AI vision analysis complete.",
            "Posture and muscle definition are estimates from visible cues.",
        ],
    )


@dataclass
class LongevityService:
    """Face, body and coach endpoints over storage and an optional vision model."""

    health_records: HealthRecordRepository
    analyses: AnalysisRepository
    client: ChatClient | None
    model: str

    async def analyze_face(
        self, uid: str, image_url: str, today: JsonObject, history: list[JsonObject]
    ) -> FaceAnalysis:
        """Vision face analysis, or the seeded placeholder when it is unavailable."""
        date_key = get_date_key(today)
        health_record = self._load_health_record(uid, date_key)
        parsed = await self._run_vision(
            "face_vision",
            FACE_VISION.render(),
            "Analyze this face image and return JSON only.",
            image_url,
            {
                "todayComputed": computed_context(today, health_record),
                "historyDays": len(history),
            },
        )
        if parsed is not None:
            result = parse_face_vision(parsed, today, health_record)
            source: AnalysisSource = "vision_ai"
        else:
            result = build_face_analysis(uid, image_url, today, history, health_record)
            source = "placeholder"
        self._persist(
            uid, date_key, "face_analyze", image_url, today, history, source, result
        )
        return result

    async def analyze_body(
        self, uid: str, image_url: str, today: JsonObject, history: list[JsonObject]
    ) -> BodyAnalysis:
        """Vision body analysis, or the seeded placeholder when it is unavailable."""
        date_key = get_date_key(today)
        health_record = self._load_health_record(uid, date_key)
        parsed = await self._run_vision(
            "body_vision",
            BODY_VISION.render(),
            "Analyze this body image and return JSON only.",
            image_url,
            {
                "todayComputed": computed_context(today, health_record),
                "historyDays": len(history),
                "hasTodayComputed": isinstance(today.get("computed"), dict),
            },
        )
        if parsed is not None:
            result = parse_body_vision(parsed, today, health_record)
            source: AnalysisSource = "vision_ai"
        else:
            result = build_body_analysis(uid, image_url, today, history, health_record)
            source = "placeholder"
        self._persist(
            uid, date_key, "body_analyze", image_url, today, history, source, result
        )
        return result

    def coach(
        self,
        uid: str,
        question: str,
        today: JsonObject,
        history: list[JsonObject],
        messages: list[JsonObject],
    ) -> str:
        """Return the coach reply for a question."""
        health_record = self._load_health_record(uid, get_date_key(today))
        return build_coach_reply(question, today, history, messages, health_record)

    async def _run_vision(
        self,
        stage: str,
        prompt: str,
        instruction: str,
        image_url: str,
        context: JsonObject,
    ) -> JsonObject | None:
        client = self.client
        if client is None:
            return None

        async def call() -> JsonObject | None:
            content = await client.complete(
                model=self.model,
                temperature=0.2,
                messages=[
                    system_message(prompt),
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": f"Context: {json.dumps(context)}"},
                            {"type": "text", "text": instruction},
                            {
                                "type": "image_url",
                                "image_url": {"url": image_url, "detail": "high"},
                            },
                        ],
                    },
                ],
            )
            return extract_json(content)

        outcome = await run_stage(stage, StagePolicy.FAIL_OPEN, call)
        return outcome.value if isinstance(outcome, Success) else None

    def _load_health_record(self, uid: str, date_key: str) -> JsonObject | None:
        try:
            return self.health_records.get_health_record(uid, date_key)
        except Exception:
            _logger.warning(
                "Health record load failed for %s; continuing without it",
                date_key,
                exc_info=True,
            )
            return None

    def _persist(  # noqa: PLR0913
        self,
        uid: str,
        date_key: str,
        field: AnalysisField,
        image_url: str,
        today: JsonObject,
        history: list[JsonObject],
        source: AnalysisSource,
        result: FaceAnalysis | BodyAnalysis,
    ) -> None:
        payload: JsonObject = {
            "imageUrl": image_url,
            "today": today,
            "history": history,
            "source": source,
            "result": result.model_dump(by_alias=True),
        }
        try:
            self.analyses.merge_analysis(uid, date_key, field, payload)
        except Exception:
            _logger.warning(
                "Persisting %s failed; result not saved", field, exc_info=True
            )


def _seed_base(  # noqa: PLR0913
    uid: str,
    image_url: str,
    today: JsonObject,
    history: list[JsonObject],
    health_record: JsonObject | None,
    kind: str,
) -> str:
    return "|".join(
        [
            uid,
            image_url.strip(),
            stable_stringify(today),
            stable_stringify(history),
            stable_stringify(health_record),
            kind,
        ]
    )


def _weighted_overall(measurements: FaceMeasurements) -> float:
    return (
        measurements.potential * 0.2
        + measurements.jawline * 0.18
        + measurements.eye_area * 0.12
        + measurements.cheekbones * 0.12
        + measurements.symmetry * 0.13
        + measurements.facial_thirds * 0.1
        + measurements.skin_quality * 0.15
    )


def _overall_score(measurements: FaceMeasurements) -> int:
    return _clamp(round_half_up(_weighted_overall(measurements)), 0, 100)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _clamped_score(value: object, fallback: float) -> int:
    """Round into 0..100; zero or junk takes the fallback."""
    number = to_number(value)
    return _clamp(round_half_up(number or fallback), 0, 100)


def _as_object(value: object) -> JsonObject:
    return value if isinstance(value, dict) else {}


def _string_list(value: object, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()][:limit]


def _snapshot_value(
    name: str, today: JsonObject, health_record: JsonObject | None
) -> float | None:
    raw = today.get(name)
    if raw is None and health_record is not None:
        raw = health_record.get(name)
    if raw is None:
        return 0.0
    number = to_number(raw, math.nan)
    return None if math.isnan(number) else number
