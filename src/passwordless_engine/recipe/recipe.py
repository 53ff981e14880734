# recipe/recipe.py
"""
PasswordlessRecipe
==================
Composition of one passwordless flow: normalised config, the core-backed
RecipeInterface and the APIInterface, each with its override chain applied
once at construction time.

The recipe is installed on the FastAPI app (``app.state``) by the
composition root; routes resolve it per request through ``get_recipe``.
Besides the HTTP flow it exposes the same operations as plain async
functions for server-side use (admin scripts, the CLI, other services).
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, Response

from passwordless_engine.core.exceptions import (
    PasswordlessEngineException,
    RecipeAlreadyInitialisedError,
    RecipeNotInitialisedError,
)
from passwordless_engine.core.querier import RECIPE_ID, CoreQuerier
from passwordless_engine.recipe.api_implementation import (
    APIImplementation,
    build_magic_link,
    get_custom_user_input_code,
)
from passwordless_engine.recipe.config import AppInfo, PasswordlessConfig, normalise_config
from passwordless_engine.recipe.implementation import CoreRecipeImplementation
from passwordless_engine.recipe.interfaces import APIInterface, APIOptions, RecipeInterface
from passwordless_engine.schemas.passwordless import (
    ConsumeCodeOkResult,
    ConsumeCodeResult,
    CreateCodeOkResult,
    CreateNewCodeForDeviceResult,
    Device,
    FlowType,
    LinkCodePath,
    SignInUpResult,
    UpdateUserResult,
    User,
    UserInputCodePath,
)
from passwordless_engine.services.session_service import SessionCreator

logger = logging.getLogger(__name__)


class PasswordlessRecipe:
    recipe_id = RECIPE_ID

    def __init__(
        self,
        config: PasswordlessConfig,
        app_info: AppInfo,
        querier: CoreQuerier,
        session_creator: SessionCreator,
    ) -> None:
        self.config = normalise_config(config, app_info)
        self.querier = querier
        self.session_creator = session_creator

        recipe_implementation: RecipeInterface = CoreRecipeImplementation(querier)
        for override_function in self.config.override.functions:
            recipe_implementation = override_function(recipe_implementation)
        self.recipe_implementation = recipe_implementation

        api_implementation: APIInterface = APIImplementation()
        for override_api in self.config.override.apis:
            api_implementation = override_api(api_implementation)
        self.api_implementation = api_implementation

    def api_options(self, request: Request, response: Response) -> APIOptions:
        return APIOptions(
            config=self.config,
            recipe_id=self.recipe_id,
            recipe_implementation=self.recipe_implementation,
            session_creator=self.session_creator,
            request=request,
            response=response,
        )

    # -- codes ---------------------------------------------------------------

    async def create_code_with_email(
        self,
        email: str,
        user_input_code: str | None = None,
        user_context: dict[str, Any] | None = None,
    ) -> CreateCodeOkResult:
        return await self.recipe_implementation.create_code(
            email, None, user_input_code, user_context or {}
        )

    async def create_code_with_phone_number(
        self,
        phone_number: str,
        user_input_code: str | None = None,
        user_context: dict[str, Any] | None = None,
    ) -> CreateCodeOkResult:
        return await self.recipe_implementation.create_code(
            None, phone_number, user_input_code, user_context or {}
        )

    async def create_new_code_for_device(
        self,
        device_id: str,
        user_input_code: str | None = None,
        user_context: dict[str, Any] | None = None,
    ) -> CreateNewCodeForDeviceResult:
        return await self.recipe_implementation.create_new_code_for_device(
            device_id, user_input_code, user_context or {}
        )

    async def consume_code_with_user_input_code(
        self,
        device_id: str,
        user_input_code: str,
        pre_auth_session_id: str,
        user_context: dict[str, Any] | None = None,
    ) -> ConsumeCodeResult:
        credentials = UserInputCodePath(device_id=device_id, user_input_code=user_input_code)
        return await self.recipe_implementation.consume_code(
            pre_auth_session_id, credentials, user_context or {}
        )

    async def consume_code_with_link_code(
        self,
        link_code: str,
        pre_auth_session_id: str,
        user_context: dict[str, Any] | None = None,
    ) -> ConsumeCodeResult:
        return await self.recipe_implementation.consume_code(
            pre_auth_session_id, LinkCodePath(link_code=link_code), user_context or {}
        )

    async def revoke_all_codes_by_email(
        self, email: str, user_context: dict[str, Any] | None = None
    ) -> None:
        await self.recipe_implementation.revoke_all_codes(email, None, user_context or {})

    async def revoke_all_codes_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any] | None = None
    ) -> None:
        await self.recipe_implementation.revoke_all_codes(None, phone_number, user_context or {})

    async def revoke_code(self, code_id: str, user_context: dict[str, Any] | None = None) -> None:
        await self.recipe_implementation.revoke_code(code_id, user_context or {})

    async def list_codes_by_email(
        self, email: str, user_context: dict[str, Any] | None = None
    ) -> list[Device]:
        return await self.recipe_implementation.list_codes_by_email(email, user_context or {})

    async def list_codes_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any] | None = None
    ) -> list[Device]:
        return await self.recipe_implementation.list_codes_by_phone_number(
            phone_number, user_context or {}
        )

    async def list_codes_by_device_id(
        self, device_id: str, user_context: dict[str, Any] | None = None
    ) -> Device | None:
        return await self.recipe_implementation.list_codes_by_device_id(
            device_id, user_context or {}
        )

    async def list_codes_by_pre_auth_session_id(
        self, pre_auth_session_id: str, user_context: dict[str, Any] | None = None
    ) -> Device | None:
        return await self.recipe_implementation.list_codes_by_pre_auth_session_id(
            pre_auth_session_id, user_context or {}
        )

    # -- users ---------------------------------------------------------------

    async def get_user_by_id(
        self, user_id: str, user_context: dict[str, Any] | None = None
    ) -> User | None:
        return await self.recipe_implementation.get_user_by_id(user_id, user_context or {})

    async def get_user_by_email(
        self, email: str, user_context: dict[str, Any] | None = None
    ) -> User | None:
        return await self.recipe_implementation.get_user_by_email(email, user_context or {})

    async def get_user_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any] | None = None
    ) -> User | None:
        return await self.recipe_implementation.get_user_by_phone_number(
            phone_number, user_context or {}
        )

    async def update_user(
        self,
        user_id: str,
        email: str | None = None,
        phone_number: str | None = None,
        user_context: dict[str, Any] | None = None,
    ) -> UpdateUserResult:
        return await self.recipe_implementation.update_user(
            user_id, email, phone_number, user_context or {}
        )

    # -- magic links / sign in up ----------------------------------------------

    async def _create_magic_link(
        self, email: str | None, phone_number: str | None, user_context: dict[str, Any]
    ) -> str:
        user_input_code = await get_custom_user_input_code(self.config, user_context)
        code = await self.recipe_implementation.create_code(
            email, phone_number, user_input_code, user_context
        )
        return await build_magic_link(
            self.config, self.recipe_id, code, email, phone_number, user_context
        )

    async def create_magic_link_by_email(
        self, email: str, user_context: dict[str, Any] | None = None
    ) -> str:
        return await self._create_magic_link(email, None, user_context or {})

    async def create_magic_link_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any] | None = None
    ) -> str:
        return await self._create_magic_link(None, phone_number, user_context or {})

    async def _sign_in_up(
        self, email: str | None, phone_number: str | None, user_context: dict[str, Any]
    ) -> SignInUpResult:
        code = await self.recipe_implementation.create_code(
            email, phone_number, None, user_context
        )

        credentials: UserInputCodePath | LinkCodePath
        if self.config.flow_type is FlowType.MAGIC_LINK:
            credentials = LinkCodePath(link_code=code.link_code)
        else:
            credentials = UserInputCodePath(
                device_id=code.device_id, user_input_code=code.user_input_code
            )

        response = await self.recipe_implementation.consume_code(
            code.pre_auth_session_id, credentials, user_context
        )
        if not isinstance(response, ConsumeCodeOkResult):
            logger.warning(
                f"[Passwordless] sign_in_up could not consume its own code: {response.status}"
            )
            raise PasswordlessEngineException(
                "Failed to create user. Please try again", error_code="SIGN_IN_UP_FAILED"
            )

        return SignInUpResult(
            pre_auth_session_id=code.pre_auth_session_id,
            created_new_user=response.created_new_user,
            user=response.user,
        )

    async def sign_in_up_by_email(
        self, email: str, user_context: dict[str, Any] | None = None
    ) -> SignInUpResult:
        return await self._sign_in_up(email, None, user_context or {})

    async def sign_in_up_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any] | None = None
    ) -> SignInUpResult:
        return await self._sign_in_up(None, phone_number, user_context or {})


# ---------------------------------------------------------------------------
# Installation on the app
# ---------------------------------------------------------------------------


def install_recipe(app: FastAPI, recipe: PasswordlessRecipe) -> None:
    if getattr(app.state, "passwordless_recipe", None) is not None:
        raise RecipeAlreadyInitialisedError()
    app.state.passwordless_recipe = recipe
    logger.info(
        f"[Passwordless] Recipe installed. contact_method={recipe.config.contact_method.value} "
        f"flow_type={recipe.config.flow_type.value}"
    )


def get_recipe(request: Request) -> PasswordlessRecipe:
    recipe = getattr(request.app.state, "passwordless_recipe", None)
    if recipe is None:
        raise RecipeNotInitialisedError()
    return recipe
