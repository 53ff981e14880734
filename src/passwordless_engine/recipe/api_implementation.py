# recipe/api_implementation.py
"""
APIImplementation
=================
Default endpoint behaviour. Each method receives already validated input,
delegates to the RecipeInterface and returns a typed outcome; the route layer
turns that outcome into the HTTP body.

  create_code_post   → create_code → deliver code / magic link
  resend_code_post   → list_codes_by_device_id → create_new_code_for_device → deliver
  consume_code_post  → consume_code → (OK only) create session
"""

import logging
from typing import Any
from urllib.parse import urlencode

from passwordless_engine.core.exceptions import DeliveryError
from passwordless_engine.recipe.config import NormalisedConfig, maybe_await
from passwordless_engine.recipe.interfaces import APIInterface, APIOptions
from passwordless_engine.schemas.passwordless import (
    ConsumeCodeOkResult,
    ConsumeCodePostOkResult,
    ConsumeCodePostResult,
    CreateCodeOkResult,
    CreateCodePostOkResult,
    CreateCodePostResult,
    Device,
    EmailExistsGetOkResult,
    EmailExistsGetResult,
    GeneralErrorResponse,
    LinkCodePath,
    PhoneNumberExistsGetOkResult,
    PhoneNumberExistsGetResult,
    ResendCodePostOkResult,
    ResendCodePostResult,
    RestartFlowError,
    UserInputCodeAlreadyUsedError,
    UserInputCodePath,
)

logger = logging.getLogger(__name__)

MAX_NEW_CODE_ATTEMPTS = 3


async def get_custom_user_input_code(
    config: NormalisedConfig, user_context: dict[str, Any]
) -> str | None:
    if config.get_custom_user_input_code is None:
        return None
    return await maybe_await(config.get_custom_user_input_code(user_context))


async def build_magic_link(
    config: NormalisedConfig,
    recipe_id: str,
    code: CreateCodeOkResult,
    email: str | None,
    phone_number: str | None,
    user_context: dict[str, Any],
) -> str:
    domain_and_path = await maybe_await(
        config.get_link_domain_and_path(email, phone_number, user_context)
    )
    query = urlencode({"rid": recipe_id, "preAuthSessionId": code.pre_auth_session_id})
    return f"{domain_and_path}?{query}#{code.link_code}"


async def send_code(
    options: APIOptions,
    code: CreateCodeOkResult,
    email: str | None,
    phone_number: str | None,
    user_context: dict[str, Any],
) -> None:
    config = options.config

    url_with_link_code = None
    if config.sends_magic_link:
        url_with_link_code = await build_magic_link(
            config, options.recipe_id, code, email, phone_number, user_context
        )
    user_input_code = code.user_input_code if config.sends_user_input_code else None

    if config.phone_enabled or (config.email_or_phone_enabled and phone_number is not None):
        send_text_message = config.create_and_send_custom_text_message
        if phone_number is None or send_text_message is None:
            raise DeliveryError("Cannot send a passwordless login SMS without a phone number")
        logger.debug(f"[Passwordless] Sending passwordless login SMS to {phone_number}")
        await send_text_message(
            phone_number,
            user_input_code,
            url_with_link_code,
            code.code_lifetime,
            code.pre_auth_session_id,
            user_context,
        )
        return

    send_email = config.create_and_send_custom_email
    if email is None or send_email is None:
        raise DeliveryError("Cannot send a passwordless login email without an email address")
    logger.debug(f"[Passwordless] Sending passwordless login email to {email}")
    await send_email(
        email,
        user_input_code,
        url_with_link_code,
        code.code_lifetime,
        code.pre_auth_session_id,
        user_context,
    )


def _device_matches_contact_method(device: Device, config: NormalisedConfig) -> bool:
    if config.email_enabled:
        return device.email is not None
    if config.phone_enabled:
        return device.phone_number is not None
    return device.email is not None or device.phone_number is not None


class APIImplementation(APIInterface):
    async def create_code_post(
        self,
        email: str | None,
        phone_number: str | None,
        options: APIOptions,
        user_context: dict[str, Any],
    ) -> CreateCodePostResult:
        user_input_code = await get_custom_user_input_code(options.config, user_context)
        code = await options.recipe_implementation.create_code(
            email, phone_number, user_input_code, user_context
        )

        await send_code(options, code, email, phone_number, user_context)

        return CreateCodePostOkResult(
            device_id=code.device_id,
            pre_auth_session_id=code.pre_auth_session_id,
            flow_type=options.config.flow_type,
        )

    async def resend_code_post(
        self,
        device_id: str,
        pre_auth_session_id: str,
        options: APIOptions,
        user_context: dict[str, Any],
    ) -> ResendCodePostResult:
        recipe = options.recipe_implementation
        device = await recipe.list_codes_by_device_id(device_id, user_context)

        if device is None or device.pre_auth_session_id != pre_auth_session_id:
            return RestartFlowError()
        if not _device_matches_contact_method(device, options.config):
            return RestartFlowError()

        for attempt in range(1, MAX_NEW_CODE_ATTEMPTS + 1):
            user_input_code = await get_custom_user_input_code(options.config, user_context)
            response = await recipe.create_new_code_for_device(
                device_id, user_input_code, user_context
            )

            if isinstance(response, UserInputCodeAlreadyUsedError):
                logger.debug(
                    f"[Passwordless] Generated code already used for device {device_id}, "
                    f"attempt {attempt}/{MAX_NEW_CODE_ATTEMPTS}"
                )
                continue
            if isinstance(response, RestartFlowError):
                return response

            await send_code(options, response, device.email, device.phone_number, user_context)
            return ResendCodePostOkResult()

        return GeneralErrorResponse(message="Failed to generate a one time code. Please try again")

    async def consume_code_post(
        self,
        pre_auth_session_id: str,
        credentials: UserInputCodePath | LinkCodePath,
        options: APIOptions,
        user_context: dict[str, Any],
    ) -> ConsumeCodePostResult:
        response = await options.recipe_implementation.consume_code(
            pre_auth_session_id, credentials, user_context
        )
        if not isinstance(response, ConsumeCodeOkResult):
            return response

        session = await options.session_creator.create_new_session(
            options.request,
            options.response,
            response.user.id,
            {},
            {},
            user_context,
        )
        logger.info(
            f"[Passwordless] User signed in. user_id={response.user.id} "
            f"created_new_user={response.created_new_user}"
        )

        return ConsumeCodePostOkResult(
            created_new_user=response.created_new_user,
            user=response.user,
            session=session,
        )

    async def email_exists_get(
        self, email: str, options: APIOptions, user_context: dict[str, Any]
    ) -> EmailExistsGetResult:
        user = await options.recipe_implementation.get_user_by_email(email, user_context)
        return EmailExistsGetOkResult(exists=user is not None)

    async def phone_number_exists_get(
        self, phone_number: str, options: APIOptions, user_context: dict[str, Any]
    ) -> PhoneNumberExistsGetResult:
        user = await options.recipe_implementation.get_user_by_phone_number(
            phone_number, user_context
        )
        return PhoneNumberExistsGetOkResult(exists=user is not None)
