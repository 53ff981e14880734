# recipe/validation.py
"""
Request validation for the passwordless endpoints.

Presence rules are checked on the raw key set first so that the messages
match what the frontend SDKs expect; field types are then enforced through
the strict request-body models. Every failure is a BadInputError (HTTP 400).
Soft failures (a well formed field rejected by the configured validator)
are not raised here: ``normalise_create_code_input`` returns the message.
"""

from typing import Any

import phonenumbers
from pydantic import BaseModel, ValidationError

from passwordless_engine.core.exceptions import BadInputError
from passwordless_engine.recipe.config import NormalisedConfig
from passwordless_engine.schemas.passwordless import (
    ConsumeCodeBody,
    ConsumeCodeInput,
    CreateCodeBody,
    CreateCodeInput,
    LinkCodePath,
    RequestBody,
    ResendCodeBody,
    ResendCodeInput,
    UserInputCodePath,
)

BOTH_OR_NEITHER_CODE_PATH = (
    "Please provide one of (linkCode) or (deviceId+userInputCode) and not both"
)


def _require_object(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise BadInputError("Request body must be a JSON object")
    return body


def _not_a_string(field: str) -> BadInputError:
    return BadInputError(f"Please make sure that {field} is a string")


def _load(model: type[RequestBody], body: dict[str, Any], order: tuple[str, ...]) -> Any:
    """
    Validate ``body`` against ``model``. The first offending field in ``order``
    (wire names) decides the error message. Explicit nulls count as non-strings.
    """
    try:
        parsed = model.model_validate(body)
    except ValidationError as exc:
        failed = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
        _raise_first_offending(body, order, failed, exc)
        raise BadInputError(str(exc)) from exc

    _raise_first_offending(body, order, set(), None)
    return parsed


def _raise_first_offending(
    body: dict[str, Any],
    order: tuple[str, ...],
    failed: set[str],
    cause: ValidationError | None,
) -> None:
    for wire_name in order:
        if wire_name in failed or (wire_name in body and body[wire_name] is None):
            raise _not_a_string(wire_name) from cause


def _field(parsed: BaseModel, name: str, wire_name: str) -> str:
    value = getattr(parsed, name)
    if not isinstance(value, str):
        raise _not_a_string(wire_name)
    return value


# ---------------------------------------------------------------------------
# POST /signinup/code
# ---------------------------------------------------------------------------


def parse_create_code_body(body: Any, config: NormalisedConfig) -> CreateCodeInput:
    body = _require_object(body)
    has_email = "email" in body
    has_phone_number = "phoneNumber" in body

    if has_email == has_phone_number:
        raise BadInputError("Please provide exactly one of email or phoneNumber")

    parsed: CreateCodeBody = _load(CreateCodeBody, body, ("email", "phoneNumber"))

    if not has_email and config.email_enabled:
        raise BadInputError("Please provide an email since you enabled ContactMethodEmail")

    if not has_phone_number and config.phone_enabled:
        raise BadInputError(
            "Please provide a phoneNumber since you have enabled ContactMethodPhone"
        )

    return CreateCodeInput(email=parsed.email, phone_number=parsed.phone_number)


async def normalise_create_code_input(
    create_input: CreateCodeInput, config: NormalisedConfig
) -> CreateCodeInput | str:
    """
    Trim / format the contact identifier and run the configured validator.
    Returns the normalised input, or the validator's message.
    """
    if create_input.email is not None:
        email = create_input.email.strip()
        message = await config.validate_email(email)
        if message is not None:
            return message
        return CreateCodeInput(email=email)

    phone_number = create_input.phone_number
    if phone_number is None:
        raise BadInputError("Please provide exactly one of email or phoneNumber")
    message = await config.validate_phone(phone_number)
    if message is not None:
        return message

    try:
        parsed = phonenumbers.parse(phone_number, None)
        phone_number = phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    except phonenumbers.NumberParseException:
        # A custom validator accepted something phonenumbers cannot parse.
        phone_number = phone_number.strip()
    return CreateCodeInput(phone_number=phone_number)


# ---------------------------------------------------------------------------
# POST /signinup/code/consume
# ---------------------------------------------------------------------------


def parse_consume_code_body(body: Any) -> ConsumeCodeInput:
    body = _require_object(body)

    if not isinstance(body.get("preAuthSessionId"), str):
        raise BadInputError("Please provide preAuthSessionId")

    has_link_code = "linkCode" in body
    has_device_id = "deviceId" in body
    has_user_input_code = "userInputCode" in body

    if has_device_id or has_user_input_code:
        if has_link_code:
            raise BadInputError(BOTH_OR_NEITHER_CODE_PATH)
        if not (has_device_id and has_user_input_code):
            raise BadInputError("Please provide both deviceId and userInputCode")
    elif not has_link_code:
        raise BadInputError(BOTH_OR_NEITHER_CODE_PATH)

    parsed: ConsumeCodeBody = _load(
        ConsumeCodeBody, body, ("userInputCode", "deviceId", "linkCode")
    )
    pre_auth_session_id = _field(parsed, "pre_auth_session_id", "preAuthSessionId")

    if has_link_code:
        return ConsumeCodeInput(
            pre_auth_session_id=pre_auth_session_id,
            credentials=LinkCodePath(link_code=_field(parsed, "link_code", "linkCode")),
        )
    return ConsumeCodeInput(
        pre_auth_session_id=pre_auth_session_id,
        credentials=UserInputCodePath(
            device_id=_field(parsed, "device_id", "deviceId"),
            user_input_code=_field(parsed, "user_input_code", "userInputCode"),
        ),
    )


# ---------------------------------------------------------------------------
# POST /signinup/code/resend
# ---------------------------------------------------------------------------


def parse_resend_code_body(body: Any) -> ResendCodeInput:
    body = _require_object(body)

    if "preAuthSessionId" not in body:
        raise BadInputError("Please provide preAuthSessionId")
    if "deviceId" not in body:
        raise BadInputError("Please provide deviceId")

    parsed: ResendCodeBody = _load(ResendCodeBody, body, ("preAuthSessionId", "deviceId"))
    return ResendCodeInput(
        pre_auth_session_id=_field(parsed, "pre_auth_session_id", "preAuthSessionId"),
        device_id=_field(parsed, "device_id", "deviceId"),
    )


# ---------------------------------------------------------------------------
# GET /signup/email/exists, GET /signup/phonenumber/exists
# ---------------------------------------------------------------------------


def parse_email_query(email: str | None) -> str:
    if not email:
        raise BadInputError("Please provide the email as a GET param")
    return email


def parse_phone_number_query(phone_number: str | None) -> str:
    if not phone_number:
        raise BadInputError("Please provide the phoneNumber as a GET param")
    return phone_number
