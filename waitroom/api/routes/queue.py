"""
Waiting room queue routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import PlainTextResponse

from waitroom.admission import AdmissionEngine, get_admission_engine
from waitroom.config import get_settings
from waitroom.constants import API_V1_PREFIX, DEFAULT_QUEUE, TOKEN_COOKIE_NAME
from waitroom.types.api import (
    AllowedUserResponse,
    AllowUserResponse,
    RankNumberResponse,
    RegisterUserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_V1_PREFIX}/queue", tags=["Queue"])

Engine = Annotated[AdmissionEngine, Depends(get_admission_engine)]
QueueName = Annotated[str, Query(min_length=1)]
UserId = Annotated[int, Query()]


@router.post(
    "",
    response_model=RegisterUserResponse,
    summary="Join a wait queue",
    description="Register a user in the wait queue and return their 1-based rank.",
)
async def register_user(
    engine: Engine,
    user_id: UserId,
    queue: QueueName = DEFAULT_QUEUE,
) -> RegisterUserResponse:
    """
    Register a user in a wait queue.

    Raises:
        AlreadyRegisteredError: If the user is already waiting (HTTP 409).
    """
    rank = await engine.register(queue, user_id)
    return RegisterUserResponse(rank=rank)


@router.post(
    "/allow",
    response_model=AllowUserResponse,
    summary="Admit waiting users",
    description="Move up to `count` earliest-registered users into the proceed set.",
)
async def allow_user(
    engine: Engine,
    count: Annotated[int, Query(ge=0)],
    queue: QueueName = DEFAULT_QUEUE,
) -> AllowUserResponse:
    """Admit a batch of users from a queue."""
    allowed = await engine.admit(queue, count)
    return AllowUserResponse(requested_count=count, allowed_count=allowed)


@router.get(
    "/allowed",
    response_model=AllowedUserResponse,
    summary="Check admission",
    description="Check whether a user holding `token` has been admitted.",
)
async def is_allowed_user(
    engine: Engine,
    user_id: UserId,
    token: Annotated[str, Query()],
    queue: QueueName = DEFAULT_QUEUE,
) -> AllowedUserResponse:
    """
    Check admission for a user presenting their token.

    Raises:
        TokenMismatchError: If the token does not belong to (queue, user_id)
            (HTTP 403).
    """
    allowed = await engine.is_admitted_with_token(queue, user_id, token)
    return AllowedUserResponse(allowed=allowed)


@router.get(
    "/rank",
    response_model=RankNumberResponse,
    summary="Get wait rank",
    description="Get a user's 1-based position in the wait queue, or -1 if not waiting.",
)
async def get_rank_user(
    engine: Engine,
    user_id: UserId,
    queue: QueueName = DEFAULT_QUEUE,
) -> RankNumberResponse:
    """Get a user's wait queue rank."""
    rank = await engine.wait_rank(queue, user_id)
    return RankNumberResponse(rank=rank)


@router.get(
    "/touch",
    response_class=PlainTextResponse,
    summary="Issue admission token",
    description="Issue the user's token and deliver it in a short-lived cookie.",
)
async def touch(
    engine: Engine,
    response: Response,
    user_id: UserId,
    queue: QueueName = DEFAULT_QUEUE,
) -> str:
    """
    Issue a token and set it as a cookie.

    The cookie's max-age is the only expiry a token has.
    """
    settings = get_settings()
    token = engine.issue_token(queue, user_id)
    response.set_cookie(
        key=TOKEN_COOKIE_NAME.format(queue=queue),
        value=token,
        max_age=settings.token_cookie_max_age_seconds,
        path="/",
    )
    logger.debug("Issued admission token", extra={"queue": queue, "user_id": user_id})
    return token
