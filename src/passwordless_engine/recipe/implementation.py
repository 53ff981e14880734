# recipe/implementation.py
"""
CoreRecipeImplementation
========================
Default RecipeInterface: every operation is one request to the auth core,
and every JSON status is translated into a typed outcome model.

Consume mapping (one shot, never retried):
  OK                               → ConsumeCodeOkResult
  INCORRECT_USER_INPUT_CODE_ERROR  → IncorrectUserInputCodeError
  EXPIRED_USER_INPUT_CODE_ERROR    → ExpiredUserInputCodeError
  anything else                    → RestartFlowError

A deviceId / preAuthSessionId mismatch is answered by the core with a
non-200 and surfaces here as CoreRequestError, not as an outcome.
"""

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from passwordless_engine.core.exceptions import CoreRequestError
from passwordless_engine.core.querier import CoreQuerier
from passwordless_engine.recipe.interfaces import RecipeInterface
from passwordless_engine.schemas.passwordless import (
    ConsumeCodeOkResult,
    ConsumeCodeResult,
    CreateCodeOkResult,
    CreateNewCodeForDeviceResult,
    Device,
    EmailAlreadyExistsError,
    ExpiredUserInputCodeError,
    IncorrectUserInputCodeError,
    LinkCodePath,
    PhoneNumberAlreadyExistsError,
    RestartFlowError,
    UnknownUserIdError,
    UpdateUserOkResult,
    UpdateUserResult,
    User,
    UserInputCodeAlreadyUsedError,
    UserInputCodePath,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

CODE_PATH = "/recipe/signinup/code"
CONSUME_CODE_PATH = "/recipe/signinup/code/consume"
REMOVE_CODE_PATH = "/recipe/signinup/code/remove"
CODES_PATH = "/recipe/signinup/codes"
REMOVE_CODES_PATH = "/recipe/signinup/codes/remove"
USER_PATH = "/recipe/user"


def _parse(model: type[M], payload: Any, path: str) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise CoreRequestError(
            f"Auth core returned an unexpected payload for path '{path}': {exc}", path=path
        ) from exc


def _status(response: dict[str, Any], path: str) -> str:
    status = response.get("status")
    if not isinstance(status, str):
        raise CoreRequestError(f"Auth core response for path '{path}' has no status", path=path)
    return status


def _parse_devices(response: dict[str, Any]) -> list[Device]:
    devices = response.get("devices")
    if not isinstance(devices, list):
        raise CoreRequestError(
            f"Auth core response for path '{CODES_PATH}' has no devices list", path=CODES_PATH
        )
    return [_parse(Device, device, CODES_PATH) for device in devices]


class CoreRecipeImplementation(RecipeInterface):
    def __init__(self, querier: CoreQuerier) -> None:
        self.querier = querier

    async def create_code(
        self,
        email: str | None,
        phone_number: str | None,
        user_input_code: str | None,
        user_context: dict[str, Any],
    ) -> CreateCodeOkResult:
        body: dict[str, Any] = {}
        if email is not None:
            body["email"] = email
        elif phone_number is not None:
            body["phoneNumber"] = phone_number
        if user_input_code is not None:
            body["userInputCode"] = user_input_code

        response = await self.querier.send_post_request(CODE_PATH, body, user_context)
        return _parse(CreateCodeOkResult, {**response, "status": "OK"}, CODE_PATH)

    async def create_new_code_for_device(
        self,
        device_id: str,
        user_input_code: str | None,
        user_context: dict[str, Any],
    ) -> CreateNewCodeForDeviceResult:
        body: dict[str, Any] = {"deviceId": device_id}
        if user_input_code is not None:
            body["userInputCode"] = user_input_code

        response = await self.querier.send_post_request(CODE_PATH, body, user_context)
        status = _status(response, CODE_PATH)

        if status == "OK":
            return _parse(CreateCodeOkResult, response, CODE_PATH)
        if status == "USER_INPUT_CODE_ALREADY_USED_ERROR":
            return UserInputCodeAlreadyUsedError()
        if status != "RESTART_FLOW_ERROR":
            logger.warning(f"[Passwordless] Unknown resend status '{status}', restarting flow")
        return RestartFlowError()

    async def consume_code(
        self,
        pre_auth_session_id: str,
        credentials: UserInputCodePath | LinkCodePath,
        user_context: dict[str, Any],
    ) -> ConsumeCodeResult:
        body: dict[str, Any] = {"preAuthSessionId": pre_auth_session_id}
        if isinstance(credentials, UserInputCodePath):
            body["deviceId"] = credentials.device_id
            body["userInputCode"] = credentials.user_input_code
        else:
            body["linkCode"] = credentials.link_code

        response = await self.querier.send_post_request(CONSUME_CODE_PATH, body, user_context)
        status = _status(response, CONSUME_CODE_PATH)

        if status == "OK":
            return _parse(ConsumeCodeOkResult, response, CONSUME_CODE_PATH)
        if status == "INCORRECT_USER_INPUT_CODE_ERROR":
            return _parse(IncorrectUserInputCodeError, response, CONSUME_CODE_PATH)
        if status == "EXPIRED_USER_INPUT_CODE_ERROR":
            return _parse(ExpiredUserInputCodeError, response, CONSUME_CODE_PATH)
        if status != "RESTART_FLOW_ERROR":
            logger.warning(f"[Passwordless] Unknown consume status '{status}', restarting flow")
        return RestartFlowError()

    async def _get_user(self, params: dict[str, str], user_context: dict[str, Any]) -> User | None:
        response = await self.querier.send_get_request(USER_PATH, params, user_context)
        if _status(response, USER_PATH) == "OK":
            return _parse(User, response.get("user"), USER_PATH)
        return None

    async def get_user_by_id(self, user_id: str, user_context: dict[str, Any]) -> User | None:
        return await self._get_user({"userId": user_id}, user_context)

    async def get_user_by_email(self, email: str, user_context: dict[str, Any]) -> User | None:
        return await self._get_user({"email": email}, user_context)

    async def get_user_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any]
    ) -> User | None:
        return await self._get_user({"phoneNumber": phone_number}, user_context)

    async def update_user(
        self,
        user_id: str,
        email: str | None,
        phone_number: str | None,
        user_context: dict[str, Any],
    ) -> UpdateUserResult:
        body: dict[str, Any] = {"userId": user_id}
        if email is not None:
            body["email"] = email
        if phone_number is not None:
            body["phoneNumber"] = phone_number

        response = await self.querier.send_put_request(USER_PATH, body, user_context)
        status = _status(response, USER_PATH)

        if status == "OK":
            return UpdateUserOkResult()
        if status == "UNKNOWN_USER_ID_ERROR":
            return UnknownUserIdError()
        if status == "EMAIL_ALREADY_EXISTS_ERROR":
            return EmailAlreadyExistsError()
        if status == "PHONE_NUMBER_ALREADY_EXISTS_ERROR":
            return PhoneNumberAlreadyExistsError()
        raise CoreRequestError(
            f"Auth core returned an unknown status '{status}' for path '{USER_PATH}'",
            path=USER_PATH,
        )

    async def revoke_all_codes(
        self, email: str | None, phone_number: str | None, user_context: dict[str, Any]
    ) -> None:
        body: dict[str, Any] = {}
        if email is not None:
            body["email"] = email
        elif phone_number is not None:
            body["phoneNumber"] = phone_number
        await self.querier.send_post_request(REMOVE_CODES_PATH, body, user_context)

    async def revoke_code(self, code_id: str, user_context: dict[str, Any]) -> None:
        await self.querier.send_post_request(REMOVE_CODE_PATH, {"codeId": code_id}, user_context)

    async def list_codes_by_email(self, email: str, user_context: dict[str, Any]) -> list[Device]:
        response = await self.querier.send_get_request(CODES_PATH, {"email": email}, user_context)
        return _parse_devices(response)

    async def list_codes_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any]
    ) -> list[Device]:
        response = await self.querier.send_get_request(
            CODES_PATH, {"phoneNumber": phone_number}, user_context
        )
        return _parse_devices(response)

    async def list_codes_by_device_id(
        self, device_id: str, user_context: dict[str, Any]
    ) -> Device | None:
        response = await self.querier.send_get_request(
            CODES_PATH, {"deviceId": device_id}, user_context
        )
        devices = _parse_devices(response)
        return devices[0] if len(devices) == 1 else None

    async def list_codes_by_pre_auth_session_id(
        self, pre_auth_session_id: str, user_context: dict[str, Any]
    ) -> Device | None:
        response = await self.querier.send_get_request(
            CODES_PATH, {"preAuthSessionId": pre_auth_session_id}, user_context
        )
        devices = _parse_devices(response)
        return devices[0] if len(devices) == 1 else None
