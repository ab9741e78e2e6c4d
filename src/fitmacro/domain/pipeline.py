"""Stage outcomes for the meal analysis pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class StagePolicy(Enum):
    """How a stage behaves when its LLM round-trip fails."""

    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


@dataclass(frozen=True)
class Success(Generic[T]):
    """Stage produced a parsed value."""

    value: T


@dataclass(frozen=True)
class Degraded(Generic[T]):
    """Stage failed but a later stage can compensate."""

    fallback: T
    reason: str


@dataclass(frozen=True)
class Fatal:
    """Stage failed and nothing downstream can recover."""

    error: str


StageOutcome = Success[T] | Degraded[T] | Fatal
