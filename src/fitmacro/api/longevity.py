"""Longevity endpoints: face and body analysis plus the coach, bearer auth."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from fitmacro.domain.errors import AuthError
from fitmacro.domain.longevity import AnalyzeRequest, CoachRequest
from fitmacro.services.auth import AuthContext, bearer_token

if TYPE_CHECKING:
    from fitmacro.containers import AppContainer

router = APIRouter(prefix="/api/longevity", tags=["longevity"])

_logger = logging.getLogger(__name__)


async def require_user(
    request: Request, authorization: str | None = Header(default=None)
) -> AuthContext:
    """Resolve the bearer token to a user or answer 401."""
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )
    container: AppContainer = request.app.state.container
    try:
        return container.token_verifier.verify(token)
    except AuthError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        ) from None


@router.post("/face-analyze")
async def face_analyze(
    body: AnalyzeRequest,
    request: Request,
    auth: AuthContext = Depends(require_user),
) -> dict[str, object]:
    """Analyze a face photo, falling back to the seeded placeholder."""
    container: AppContainer = request.app.state.container
    result = await container.longevity_service.analyze_face(
        auth.uid, body.image_url, body.today, body.history
    )
    return result.model_dump(by_alias=True)


@router.post("/body-analyze")
async def body_analyze(
    body: AnalyzeRequest,
    request: Request,
    auth: AuthContext = Depends(require_user),
) -> dict[str, object]:
    """Analyze a body photo, falling back to the seeded placeholder."""
    container: AppContainer = request.app.state.container
    result = await container.longevity_service.analyze_body(
        auth.uid, body.image_url, body.today, body.history
    )
    return result.model_dump(by_alias=True)


@router.post("/coach")
async def coach(
    body: CoachRequest,
    request: Request,
    auth: AuthContext = Depends(require_user),
) -> dict[str, str]:
    """Answer a coach question from today's snapshot."""
    container: AppContainer = request.app.state.container
    reply = container.longevity_service.coach(
        auth.uid, body.question, body.today, body.history, body.messages
    )
    return {"reply": reply}
