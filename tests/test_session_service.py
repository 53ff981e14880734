import json

import pytest
from fastapi import Response
from starlette.requests import Request

from passwordless_engine.core.security import token_manager
from passwordless_engine.services.session_service import (
    ACCESS_TOKEN_HEADER,
    REFRESH_TOKEN_HEADER,
    RedisSessionCreator,
)


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.ttls[key] = ttl


def _request() -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/auth/signinup/code/consume",
            "headers": [(b"user-agent", b"pytest")],
            "client": ("10.0.0.1", 1234),
        }
    )


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


async def test_create_new_session(fake_redis):
    creator = RedisSessionCreator(fake_redis)
    response = Response()

    session = await creator.create_new_session(
        _request(), response, "user-1", {"role": "member"}, {"source": "passwordless"}, {}
    )

    key = f"session:user-1:{session.session_handle}"
    record = json.loads(fake_redis.store[key])
    assert record["user_id"] == "user-1"
    assert record["ip_address"] == "10.0.0.1"
    assert record["user_agent"] == "pytest"
    assert record["session_data"] == {"source": "passwordless"}
    assert fake_redis.ttls[key] == 7 * 24 * 60 * 60

    assert response.headers[ACCESS_TOKEN_HEADER] == session.access_token
    assert response.headers[REFRESH_TOKEN_HEADER] == session.refresh_token

    claims = token_manager.verify_access_token(session.access_token)
    assert claims["sub"] == "user-1"
    assert claims["sessionHandle"] == session.session_handle
    assert claims["role"] == "member"

    refresh_claims = token_manager.decode_token(session.refresh_token)
    assert refresh_claims["type"] == "refresh"


async def test_refresh_token_is_not_an_access_token(fake_redis):
    session = await RedisSessionCreator(fake_redis).create_new_session(
        _request(), Response(), "user-1", {}, {}, {}
    )
    with pytest.raises(ValueError):
        token_manager.verify_access_token(session.refresh_token)


async def test_without_client_requires_connected_redis():
    with pytest.raises(RuntimeError):
        await RedisSessionCreator().create_new_session(_request(), Response(), "u", {}, {}, {})


async def test_consume_sets_session_headers_end_to_end(
    make_config, app_info, querier, fake_redis, make_client
):
    from passwordless_engine.recipe.recipe import PasswordlessRecipe

    recipe = PasswordlessRecipe(
        make_config(get_custom_user_input_code=lambda user_context: "123456"),
        app_info,
        querier,
        RedisSessionCreator(fake_redis),
    )
    async with make_client(recipe) as client:
        created = (
            await client.post("/auth/signinup/code", json={"email": "johndoe@gmail.com"})
        ).json()
        response = await client.post(
            "/auth/signinup/code/consume",
            json={
                "preAuthSessionId": created["preAuthSessionId"],
                "deviceId": created["deviceId"],
                "userInputCode": "123456",
            },
        )

    user_id = response.json()["user"]["id"]
    claims = token_manager.verify_access_token(response.headers[ACCESS_TOKEN_HEADER])
    assert claims["sub"] == user_id
    assert list(fake_redis.store) == [f"session:{user_id}:{claims['sessionHandle']}"]
