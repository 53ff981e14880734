# api/v1/passwordless.py
"""
Passwordless endpoints
======================

POST /signinup/code
  - Accepts exactly one of email / phoneNumber
  - Creates a code on the auth core and delivers it (OTP and / or magic link)

POST /signinup/code/resend
  - Issues a fresh code for an existing device and delivers it again

POST /signinup/code/consume
  - Accepts either linkCode or deviceId + userInputCode, never both
  - On success a session is created and its tokens are sent as headers

GET  /signup/email/exists?email=
GET  /signup/phonenumber/exists?phoneNumber=

Bodies are read as raw JSON so that presence and type errors produce the
exact BAD_INPUT_ERROR messages the frontend SDKs expect. Outcome models are
returned as plain dicts so that headers written on the injected Response
(session tokens) are kept.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from passwordless_engine.core.exceptions import BadInputError
from passwordless_engine.recipe.recipe import PasswordlessRecipe, get_recipe
from passwordless_engine.recipe.validation import (
    normalise_create_code_input,
    parse_consume_code_body,
    parse_create_code_body,
    parse_email_query,
    parse_phone_number_query,
    parse_resend_code_body,
)
from passwordless_engine.schemas.passwordless import GeneralErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError
        raise BadInputError("Request body must be a JSON object") from exc


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "Not Found"})


# ---------------------------------------------------------------------------
# POST /signinup/code
# ---------------------------------------------------------------------------


@router.post("/signinup/code", response_model=None, summary="Create a passwordless login code")
async def create_code(
    request: Request,
    response: Response,
    recipe: PasswordlessRecipe = Depends(get_recipe),
) -> dict[str, Any] | JSONResponse:
    api = recipe.api_implementation
    if api.disable_create_code_post:
        return _not_found()

    body = await _read_json(request)
    create_input = parse_create_code_body(body, recipe.config)

    normalised = await normalise_create_code_input(create_input, recipe.config)
    if isinstance(normalised, str):
        logger.debug(f"[Passwordless] create code rejected by validator: {normalised}")
        return GeneralErrorResponse(message=normalised).to_json()

    result = await api.create_code_post(
        normalised.email,
        normalised.phone_number,
        recipe.api_options(request, response),
        {},
    )
    return result.to_json()


# ---------------------------------------------------------------------------
# POST /signinup/code/resend
# ---------------------------------------------------------------------------


@router.post("/signinup/code/resend", response_model=None, summary="Resend a login code")
async def resend_code(
    request: Request,
    response: Response,
    recipe: PasswordlessRecipe = Depends(get_recipe),
) -> dict[str, Any] | JSONResponse:
    api = recipe.api_implementation
    if api.disable_resend_code_post:
        return _not_found()

    resend_input = parse_resend_code_body(await _read_json(request))

    result = await api.resend_code_post(
        resend_input.device_id,
        resend_input.pre_auth_session_id,
        recipe.api_options(request, response),
        {},
    )
    return result.to_json()


# ---------------------------------------------------------------------------
# POST /signinup/code/consume
# ---------------------------------------------------------------------------


@router.post("/signinup/code/consume", response_model=None, summary="Consume a login code")
async def consume_code(
    request: Request,
    response: Response,
    recipe: PasswordlessRecipe = Depends(get_recipe),
) -> dict[str, Any] | JSONResponse:
    api = recipe.api_implementation
    if api.disable_consume_code_post:
        return _not_found()

    consume_input = parse_consume_code_body(await _read_json(request))

    result = await api.consume_code_post(
        consume_input.pre_auth_session_id,
        consume_input.credentials,
        recipe.api_options(request, response),
        {},
    )
    return result.to_json()


# ---------------------------------------------------------------------------
# GET /signup/email/exists, GET /signup/phonenumber/exists
# ---------------------------------------------------------------------------


@router.get("/signup/email/exists", response_model=None, summary="Check if an email is registered")
async def email_exists(
    request: Request,
    response: Response,
    email: str | None = None,
    recipe: PasswordlessRecipe = Depends(get_recipe),
) -> dict[str, Any] | JSONResponse:
    api = recipe.api_implementation
    if api.disable_email_exists_get:
        return _not_found()

    result = await api.email_exists_get(
        parse_email_query(email), recipe.api_options(request, response), {}
    )
    return result.to_json()


@router.get(
    "/signup/phonenumber/exists",
    response_model=None,
    summary="Check if a phone number is registered",
)
async def phone_number_exists(
    request: Request,
    response: Response,
    phone_number: str | None = Query(default=None, alias="phoneNumber"),
    recipe: PasswordlessRecipe = Depends(get_recipe),
) -> dict[str, Any] | JSONResponse:
    api = recipe.api_implementation
    if api.disable_phone_number_exists_get:
        return _not_found()

    result = await api.phone_number_exists_get(
        parse_phone_number_query(phone_number), recipe.api_options(request, response), {}
    )
    return result.to_json()
