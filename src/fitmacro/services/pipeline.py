"""Stage runner applying a per-stage failure policy."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from fitmacro.domain.pipeline import (
    Degraded,
    Fatal,
    StageOutcome,
    StagePolicy,
    Success,
)

T = TypeVar("T")

_logger = logging.getLogger(__name__)


async def run_stage(
    name: str,
    policy: StagePolicy,
    call: Callable[[], Awaitable[T | None]],
    fallback: T | None = None,
) -> StageOutcome[T]:
    """Run one stage; ``call`` returns None when the model output was unusable.

    Fail-open stages turn errors and unusable output into ``Degraded`` carrying
    the fallback. Fail-closed stages turn them into ``Fatal``.
    """
    try:
        value = await call()
    except Exception as exc:
        _logger.warning("Stage %s upstream call failed: %s", name, exc)
        reason = f"upstream error: {type(exc).__name__}"
    else:
        if value is not None:
            _logger.info("Stage %s succeeded", name)
            return Success(value)
        _logger.warning("Stage %s returned unparsable output", name)
        reason = "unparsable output"

    if policy is StagePolicy.FAIL_OPEN:
        return Degraded(fallback=fallback, reason=reason)
    return Fatal(error=f"{name}: {reason}")
