import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from typing import Any

import redis.asyncio as redis
from fastapi import Request, Response
from pydantic import BaseModel, Field

from passwordless_engine.core.config import settings
from passwordless_engine.core.redis import get_redis, session_key
from passwordless_engine.core.security import token_manager

ACCESS_TOKEN_HEADER = "st-access-token"
REFRESH_TOKEN_HEADER = "st-refresh-token"


class SessionRecord(BaseModel):
    session_handle: str
    user_id: str
    ip_address: str | None = None
    user_agent: str | None = None
    session_data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    expires_at: datetime


class SessionContainer(BaseModel):
    session_handle: str
    user_id: str
    access_token: str
    refresh_token: str
    access_token_payload: dict[str, Any] = Field(default_factory=dict)


class SessionCreator(ABC):
    """Creates a session once the auth core has confirmed a sign in."""

    @abstractmethod
    async def create_new_session(
        self,
        request: Request,
        response: Response,
        user_id: str,
        access_token_payload: dict[str, Any],
        session_data: dict[str, Any],
        user_context: dict[str, Any],
    ) -> SessionContainer:
        pass


class RedisSessionCreator(SessionCreator):
    """
    Stores a session record in Redis under ``session:{user_id}:{handle}``,
    issues an access / refresh JWT pair and exposes both as response headers.

    Without an explicit client the shared connection from core.redis is used,
    which only exists once the app lifespan has connected it.
    """

    def __init__(self, redis_client: redis.Redis | None = None):
        self._redis_client = redis_client

    async def _redis(self) -> redis.Redis:
        if self._redis_client is not None:
            return self._redis_client
        return await get_redis()

    async def create_new_session(
        self,
        request: Request,
        response: Response,
        user_id: str,
        access_token_payload: dict[str, Any],
        session_data: dict[str, Any],
        user_context: dict[str, Any],
    ) -> SessionContainer:
        session_handle = str(uuid.uuid4())
        expires_in_seconds = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
        now = datetime.now(UTC)

        record = SessionRecord(
            session_handle=session_handle,
            user_id=user_id,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            session_data=session_data,
            created_at=now,
            expires_at=now + timedelta(seconds=expires_in_seconds),
        )
        redis_conn = await self._redis()
        await redis_conn.setex(
            session_key(user_id, session_handle), expires_in_seconds, record.model_dump_json()
        )

        claims = {**access_token_payload, "sub": user_id, "sessionHandle": session_handle}
        access_token = token_manager.create_access_token(claims)
        refresh_token = token_manager.create_refresh_token(
            {"sub": user_id, "sessionHandle": session_handle}
        )

        response.headers[ACCESS_TOKEN_HEADER] = access_token
        response.headers[REFRESH_TOKEN_HEADER] = refresh_token
        response.headers["access-control-expose-headers"] = (
            f"{ACCESS_TOKEN_HEADER}, {REFRESH_TOKEN_HEADER}"
        )

        return SessionContainer(
            session_handle=session_handle,
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_payload=access_token_payload,
        )
