# core/security.py

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from passwordless_engine.core.config import settings


class TokenManager:
    @staticmethod
    def _encode(data: dict[str, Any], expires_delta: timedelta, token_type: str) -> str:
        to_encode = data.copy()
        now = datetime.now(UTC)

        to_encode.update(
            {
                "exp": now + expires_delta,
                "iat": now,
                "iss": settings.JWT_ISSUER,
                "aud": settings.JWT_AUDIENCE,
            }
        )
        if "type" not in to_encode:
            to_encode["type"] = token_type

        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
        return TokenManager._encode(
            data,
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            "access",
        )

    @staticmethod
    def create_refresh_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
        return TokenManager._encode(
            data,
            expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            "refresh",
        )

    @staticmethod
    def decode_token(token: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
                audience=settings.JWT_AUDIENCE,
                issuer=settings.JWT_ISSUER,
            )
            return payload
        except JWTError as e:
            raise ValueError(f"Invalid token: {str(e)}") from e

    @staticmethod
    def verify_access_token(token: str) -> dict[str, Any]:
        payload = TokenManager.decode_token(token)

        if payload.get("type") != "access":
            raise ValueError("Invalid token type")

        return payload


token_manager = TokenManager()
