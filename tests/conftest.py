import os

os.environ.setdefault("CORE_CONNECTION_URI", "http://core.test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")

import json
import time
import uuid
from collections.abc import AsyncGenerator, Callable
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
import pytest_asyncio
from fastapi import Request, Response

from passwordless_engine.core.querier import CoreQuerier
from passwordless_engine.recipe.config import (
    AppInfo,
    ContactMethodEmail,
    ContactMethodEmailOrPhone,
    ContactMethodPhone,
    OverrideConfig,
    PasswordlessConfig,
)
from passwordless_engine.recipe.recipe import PasswordlessRecipe
from passwordless_engine.services.session_service import SessionContainer, SessionCreator

CORE_URL = "http://core.test"
MAX_CODE_INPUT_ATTEMPTS = 5
CODE_LIFETIME_MS = 900_000


# ---------------------------------------------------------------------------
# In-memory auth core
# ---------------------------------------------------------------------------


class FakeCore:
    """
    Keeps devices, codes and users in dicts and answers the core's JSON API.
    Consumed codes disappear with their device, so a code works only once.
    """

    def __init__(self) -> None:
        self.devices: dict[str, dict[str, Any]] = {}
        self.users: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        # Statuses forced onto the next responses for a path, oldest first
        self.scripted: dict[str, list[tuple[int, Any]]] = {}

    # -- helpers ------------------------------------------------------------

    def script(self, path: str, status_code: int, payload: Any) -> None:
        self.scripted.setdefault(path, []).append((status_code, payload))

    def add_user(self, email: str | None = None, phone_number: str | None = None) -> dict:
        user: dict[str, Any] = {"id": str(uuid.uuid4()), "timeJoined": int(time.time() * 1000)}
        if email is not None:
            user["email"] = email
        if phone_number is not None:
            user["phoneNumber"] = phone_number
        self.users[user["id"]] = user
        return user

    def _new_code(self, device_id: str, user_input_code: str | None) -> dict[str, Any]:
        device = self.devices[device_id]
        code = {
            "codeId": str(uuid.uuid4()),
            "userInputCode": user_input_code or f"{len(self.requests):06d}"[-6:],
            "linkCode": uuid.uuid4().hex,
            "timeCreated": int(time.time() * 1000),
            "codeLifetime": CODE_LIFETIME_MS,
            "used": False,
        }
        device["codes"].append(code)
        return {
            "status": "OK",
            "preAuthSessionId": device["preAuthSessionId"],
            "codeId": code["codeId"],
            "deviceId": device_id,
            "userInputCode": code["userInputCode"],
            "linkCode": code["linkCode"],
            "codeLifetime": code["codeLifetime"],
            "timeCreated": code["timeCreated"],
        }

    def _device_json(self, device: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "preAuthSessionId": device["preAuthSessionId"],
            "failedCodeInputAttemptCount": device["failedCodeInputAttemptCount"],
            "codes": [
                {
                    "codeId": code["codeId"],
                    "timeCreated": code["timeCreated"],
                    "codeLifetime": code["codeLifetime"],
                }
                for code in device["codes"]
            ],
        }
        if device.get("email") is not None:
            payload["email"] = device["email"]
        if device.get("phoneNumber") is not None:
            payload["phoneNumber"] = device["phoneNumber"]
        return payload

    def _sign_in(self, device: dict[str, Any]) -> dict[str, Any]:
        for user in self.users.values():
            if device.get("email") is not None and user.get("email") == device["email"]:
                return {"status": "OK", "createdNewUser": False, "user": user}
            if (
                device.get("phoneNumber") is not None
                and user.get("phoneNumber") == device["phoneNumber"]
            ):
                return {"status": "OK", "createdNewUser": False, "user": user}
        user = self.add_user(device.get("email"), device.get("phoneNumber"))
        return {"status": "OK", "createdNewUser": True, "user": user}

    # -- endpoints ------------------------------------------------------------

    def create_code(self, body: dict[str, Any]) -> dict[str, Any]:
        if "deviceId" in body:
            device = self.devices.get(body["deviceId"])
            if device is None:
                return {"status": "RESTART_FLOW_ERROR"}
            requested = body.get("userInputCode")
            if requested is not None and any(
                code["userInputCode"] == requested for code in device["codes"]
            ):
                return {"status": "USER_INPUT_CODE_ALREADY_USED_ERROR"}
            return self._new_code(body["deviceId"], requested)

        device_id = str(uuid.uuid4())
        self.devices[device_id] = {
            "preAuthSessionId": uuid.uuid4().hex,
            "failedCodeInputAttemptCount": 0,
            "email": body.get("email"),
            "phoneNumber": body.get("phoneNumber"),
            "codes": [],
        }
        return self._new_code(device_id, body.get("userInputCode"))

    def consume_code(self, body: dict[str, Any]) -> tuple[int, Any]:
        pre_auth_session_id = body["preAuthSessionId"]

        if "linkCode" in body:
            for device_id, device in self.devices.items():
                for code in device["codes"]:
                    if code["linkCode"] == body["linkCode"]:
                        if device["preAuthSessionId"] != pre_auth_session_id:
                            return 200, {"status": "RESTART_FLOW_ERROR"}
                        del self.devices[device_id]
                        return 200, self._sign_in(device)
            return 200, {"status": "RESTART_FLOW_ERROR"}

        device = self.devices.get(body["deviceId"])
        if device is None:
            return 200, {"status": "RESTART_FLOW_ERROR"}
        if device["preAuthSessionId"] != pre_auth_session_id:
            return 400, "preAuthSessionId and deviceId doesn't match"

        for code in device["codes"]:
            if code["userInputCode"] == body["userInputCode"]:
                expires_at = code["timeCreated"] + code["codeLifetime"]
                if expires_at < int(time.time() * 1000):
                    device["failedCodeInputAttemptCount"] += 1
                    return 200, {
                        "status": "EXPIRED_USER_INPUT_CODE_ERROR",
                        "failedCodeInputAttemptCount": device["failedCodeInputAttemptCount"],
                        "maximumCodeInputAttempts": MAX_CODE_INPUT_ATTEMPTS,
                    }
                del self.devices[body["deviceId"]]
                return 200, self._sign_in(device)

        device["failedCodeInputAttemptCount"] += 1
        if device["failedCodeInputAttemptCount"] >= MAX_CODE_INPUT_ATTEMPTS:
            del self.devices[body["deviceId"]]
            return 200, {"status": "RESTART_FLOW_ERROR"}
        return 200, {
            "status": "INCORRECT_USER_INPUT_CODE_ERROR",
            "failedCodeInputAttemptCount": device["failedCodeInputAttemptCount"],
            "maximumCodeInputAttempts": MAX_CODE_INPUT_ATTEMPTS,
        }

    def get_user(self, params: dict[str, str]) -> dict[str, Any]:
        for user in self.users.values():
            if "userId" in params and user["id"] == params["userId"]:
                return {"status": "OK", "user": user}
            if "email" in params and user.get("email") == params["email"]:
                return {"status": "OK", "user": user}
            if "phoneNumber" in params and user.get("phoneNumber") == params["phoneNumber"]:
                return {"status": "OK", "user": user}
        if "email" in params:
            return {"status": "UNKNOWN_EMAIL_ERROR"}
        if "phoneNumber" in params:
            return {"status": "UNKNOWN_PHONE_NUMBER_ERROR"}
        return {"status": "UNKNOWN_USER_ID_ERROR"}

    def update_user(self, body: dict[str, Any]) -> dict[str, Any]:
        user = self.users.get(body["userId"])
        if user is None:
            return {"status": "UNKNOWN_USER_ID_ERROR"}
        for other in self.users.values():
            if other is user:
                continue
            if "email" in body and other.get("email") == body["email"]:
                return {"status": "EMAIL_ALREADY_EXISTS_ERROR"}
            if "phoneNumber" in body and other.get("phoneNumber") == body["phoneNumber"]:
                return {"status": "PHONE_NUMBER_ALREADY_EXISTS_ERROR"}
        if "email" in body:
            user["email"] = body["email"]
        if "phoneNumber" in body:
            user["phoneNumber"] = body["phoneNumber"]
        return {"status": "OK"}

    def list_codes(self, params: dict[str, str]) -> dict[str, Any]:
        devices = []
        for device_id, device in self.devices.items():
            if (
                params.get("deviceId") == device_id
                or ("email" in params and device.get("email") == params["email"])
                or (
                    "phoneNumber" in params
                    and device.get("phoneNumber") == params["phoneNumber"]
                )
                or params.get("preAuthSessionId") == device["preAuthSessionId"]
            ):
                devices.append(self._device_json(device))
        return {"status": "OK", "devices": devices}

    def remove_codes(self, body: dict[str, Any]) -> dict[str, Any]:
        for device_id, device in list(self.devices.items()):
            if ("email" in body and device.get("email") == body["email"]) or (
                "phoneNumber" in body and device.get("phoneNumber") == body["phoneNumber"]
            ):
                del self.devices[device_id]
        return {"status": "OK"}

    def remove_code(self, body: dict[str, Any]) -> dict[str, Any]:
        for device_id, device in list(self.devices.items()):
            device["codes"] = [c for c in device["codes"] if c["codeId"] != body["codeId"]]
            if not device["codes"]:
                del self.devices[device_id]
        return {"status": "OK"}

    # -- transport ------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = {key: values[0] for key, values in parse_qs(urlparse(str(request.url)).query).items()}
        body = json.loads(request.content) if request.content else {}

        if self.scripted.get(path):
            status_code, payload = self.scripted[path].pop(0)
            if isinstance(payload, str):
                return httpx.Response(status_code, text=payload)
            return httpx.Response(status_code, json=payload)

        if path == "/hello":
            return httpx.Response(200, text="Hello")
        if path == "/recipe/signinup/code" and request.method == "POST":
            return httpx.Response(200, json=self.create_code(body))
        if path == "/recipe/signinup/code/consume":
            status_code, payload = self.consume_code(body)
            if isinstance(payload, str):
                return httpx.Response(status_code, text=payload)
            return httpx.Response(status_code, json=payload)
        if path == "/recipe/user" and request.method == "GET":
            return httpx.Response(200, json=self.get_user(params))
        if path == "/recipe/user" and request.method == "PUT":
            return httpx.Response(200, json=self.update_user(body))
        if path == "/recipe/signinup/codes":
            return httpx.Response(200, json=self.list_codes(params))
        if path == "/recipe/signinup/codes/remove":
            return httpx.Response(200, json=self.remove_codes(body))
        if path == "/recipe/signinup/code/remove":
            return httpx.Response(200, json=self.remove_code(body))
        return httpx.Response(404, text="Not found")


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class RecordingSessionCreator(SessionCreator):
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def create_new_session(
        self,
        request: Request,
        response: Response,
        user_id: str,
        access_token_payload: dict[str, Any],
        session_data: dict[str, Any],
        user_context: dict[str, Any],
    ) -> SessionContainer:
        self.calls.append(user_id)
        response.headers["st-access-token"] = f"access-{user_id}"
        return SessionContainer(
            session_handle=f"handle-{len(self.calls)}",
            user_id=user_id,
            access_token=f"access-{user_id}",
            refresh_token=f"refresh-{user_id}",
        )


class Outbox:
    def __init__(self) -> None:
        self.emails: list[dict[str, Any]] = []
        self.sms: list[dict[str, Any]] = []

    def _sender(self, box: list[dict[str, Any]]) -> Callable:
        async def send(
            identifier: str,
            user_input_code: str | None,
            url_with_link_code: str | None,
            code_lifetime: int,
            pre_auth_session_id: str,
            user_context: dict[str, Any],
        ) -> None:
            box.append(
                {
                    "to": identifier,
                    "user_input_code": user_input_code,
                    "url_with_link_code": url_with_link_code,
                    "code_lifetime": code_lifetime,
                    "pre_auth_session_id": pre_auth_session_id,
                }
            )

        return send

    @property
    def send_email(self) -> Callable:
        return self._sender(self.emails)

    @property
    def send_sms(self) -> Callable:
        return self._sender(self.sms)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_core() -> FakeCore:
    return FakeCore()


@pytest_asyncio.fixture
async def querier(fake_core: FakeCore) -> AsyncGenerator[CoreQuerier, None]:
    querier = CoreQuerier(CORE_URL, api_key="core-key", transport=httpx.MockTransport(fake_core.handle))
    yield querier
    await querier.aclose()


@pytest.fixture()
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture()
def session_creator() -> RecordingSessionCreator:
    return RecordingSessionCreator()


@pytest.fixture()
def app_info() -> AppInfo:
    return AppInfo(app_name="Demo", website_domain="http://localhost:3000")


@pytest.fixture()
def make_config(outbox: Outbox) -> Callable[..., PasswordlessConfig]:
    def make(
        contact_method: str = "EMAIL",
        flow_type: str = "USER_INPUT_CODE_AND_MAGIC_LINK",
        override: OverrideConfig | None = None,
        **kwargs: Any,
    ) -> PasswordlessConfig:
        if contact_method == "EMAIL":
            methods: dict[str, Any] = {
                "contact_method_email": ContactMethodEmail(
                    create_and_send_custom_email=outbox.send_email
                )
            }
        elif contact_method == "PHONE":
            methods = {
                "contact_method_phone": ContactMethodPhone(
                    create_and_send_custom_text_message=outbox.send_sms
                )
            }
        else:
            methods = {
                "contact_method_email_or_phone": ContactMethodEmailOrPhone(
                    create_and_send_custom_email=outbox.send_email,
                    create_and_send_custom_text_message=outbox.send_sms,
                )
            }
        return PasswordlessConfig(flow_type=flow_type, override=override, **methods, **kwargs)

    return make


@pytest.fixture()
def make_recipe(
    make_config: Callable[..., PasswordlessConfig],
    app_info: AppInfo,
    querier: CoreQuerier,
    session_creator: RecordingSessionCreator,
) -> Callable[..., PasswordlessRecipe]:
    def make(**kwargs: Any) -> PasswordlessRecipe:
        return PasswordlessRecipe(make_config(**kwargs), app_info, querier, session_creator)

    return make


@pytest.fixture()
def make_client() -> Callable[[PasswordlessRecipe], httpx.AsyncClient]:
    from passwordless_engine.main import create_app

    def make(recipe: PasswordlessRecipe) -> httpx.AsyncClient:
        app = create_app(recipe)
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://testserver")

    return make
