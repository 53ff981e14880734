# recipe/interfaces.py

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fastapi import Request, Response

from passwordless_engine.schemas.passwordless import (
    ConsumeCodePostResult,
    ConsumeCodeResult,
    CreateCodeOkResult,
    CreateCodePostResult,
    CreateNewCodeForDeviceResult,
    Device,
    EmailExistsGetResult,
    LinkCodePath,
    PhoneNumberExistsGetResult,
    ResendCodePostResult,
    UpdateUserResult,
    User,
    UserInputCodePath,
)

if TYPE_CHECKING:
    from passwordless_engine.recipe.config import NormalisedConfig
    from passwordless_engine.services.session_service import SessionCreator


class RecipeInterface(ABC):
    """
    Operations the passwordless flow needs from the auth core.

    The default implementation talks to the core over HTTP
    (see recipe/implementation.py); overrides wrap it.
    """

    @abstractmethod
    async def create_code(
        self,
        email: str | None,
        phone_number: str | None,
        user_input_code: str | None,
        user_context: dict[str, Any],
    ) -> CreateCodeOkResult:
        pass

    @abstractmethod
    async def create_new_code_for_device(
        self,
        device_id: str,
        user_input_code: str | None,
        user_context: dict[str, Any],
    ) -> CreateNewCodeForDeviceResult:
        pass

    @abstractmethod
    async def consume_code(
        self,
        pre_auth_session_id: str,
        credentials: UserInputCodePath | LinkCodePath,
        user_context: dict[str, Any],
    ) -> ConsumeCodeResult:
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: str, user_context: dict[str, Any]) -> User | None:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str, user_context: dict[str, Any]) -> User | None:
        pass

    @abstractmethod
    async def get_user_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any]
    ) -> User | None:
        pass

    @abstractmethod
    async def update_user(
        self,
        user_id: str,
        email: str | None,
        phone_number: str | None,
        user_context: dict[str, Any],
    ) -> UpdateUserResult:
        pass

    @abstractmethod
    async def revoke_all_codes(
        self, email: str | None, phone_number: str | None, user_context: dict[str, Any]
    ) -> None:
        pass

    @abstractmethod
    async def revoke_code(self, code_id: str, user_context: dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def list_codes_by_email(self, email: str, user_context: dict[str, Any]) -> list[Device]:
        pass

    @abstractmethod
    async def list_codes_by_phone_number(
        self, phone_number: str, user_context: dict[str, Any]
    ) -> list[Device]:
        pass

    @abstractmethod
    async def list_codes_by_device_id(
        self, device_id: str, user_context: dict[str, Any]
    ) -> Device | None:
        pass

    @abstractmethod
    async def list_codes_by_pre_auth_session_id(
        self, pre_auth_session_id: str, user_context: dict[str, Any]
    ) -> Device | None:
        pass


class RecipeInterfaceWrapper(RecipeInterface):
    """Delegates every call to ``original``. Subclass and override what you need."""

    def __init__(self, original: RecipeInterface) -> None:
        self.original = original

    async def create_code(self, email, phone_number, user_input_code, user_context):
        return await self.original.create_code(email, phone_number, user_input_code, user_context)

    async def create_new_code_for_device(self, device_id, user_input_code, user_context):
        return await self.original.create_new_code_for_device(
            device_id, user_input_code, user_context
        )

    async def consume_code(self, pre_auth_session_id, credentials, user_context):
        return await self.original.consume_code(pre_auth_session_id, credentials, user_context)

    async def get_user_by_id(self, user_id, user_context):
        return await self.original.get_user_by_id(user_id, user_context)

    async def get_user_by_email(self, email, user_context):
        return await self.original.get_user_by_email(email, user_context)

    async def get_user_by_phone_number(self, phone_number, user_context):
        return await self.original.get_user_by_phone_number(phone_number, user_context)

    async def update_user(self, user_id, email, phone_number, user_context):
        return await self.original.update_user(user_id, email, phone_number, user_context)

    async def revoke_all_codes(self, email, phone_number, user_context):
        return await self.original.revoke_all_codes(email, phone_number, user_context)

    async def revoke_code(self, code_id, user_context):
        return await self.original.revoke_code(code_id, user_context)

    async def list_codes_by_email(self, email, user_context):
        return await self.original.list_codes_by_email(email, user_context)

    async def list_codes_by_phone_number(self, phone_number, user_context):
        return await self.original.list_codes_by_phone_number(phone_number, user_context)

    async def list_codes_by_device_id(self, device_id, user_context):
        return await self.original.list_codes_by_device_id(device_id, user_context)

    async def list_codes_by_pre_auth_session_id(self, pre_auth_session_id, user_context):
        return await self.original.list_codes_by_pre_auth_session_id(
            pre_auth_session_id, user_context
        )


@dataclass
class APIOptions:
    config: "NormalisedConfig"
    recipe_id: str
    recipe_implementation: RecipeInterface
    session_creator: "SessionCreator"
    request: Request
    response: Response


class APIInterface(ABC):
    """
    Endpoint level behaviour. Setting one of the ``disable_*`` flags turns the
    matching route into a 404.
    """

    disable_create_code_post: bool = False
    disable_resend_code_post: bool = False
    disable_consume_code_post: bool = False
    disable_email_exists_get: bool = False
    disable_phone_number_exists_get: bool = False

    @abstractmethod
    async def create_code_post(
        self,
        email: str | None,
        phone_number: str | None,
        options: APIOptions,
        user_context: dict[str, Any],
    ) -> CreateCodePostResult:
        pass

    @abstractmethod
    async def resend_code_post(
        self,
        device_id: str,
        pre_auth_session_id: str,
        options: APIOptions,
        user_context: dict[str, Any],
    ) -> ResendCodePostResult:
        pass

    @abstractmethod
    async def consume_code_post(
        self,
        pre_auth_session_id: str,
        credentials: UserInputCodePath | LinkCodePath,
        options: APIOptions,
        user_context: dict[str, Any],
    ) -> ConsumeCodePostResult:
        pass

    @abstractmethod
    async def email_exists_get(
        self, email: str, options: APIOptions, user_context: dict[str, Any]
    ) -> EmailExistsGetResult:
        pass

    @abstractmethod
    async def phone_number_exists_get(
        self, phone_number: str, options: APIOptions, user_context: dict[str, Any]
    ) -> PhoneNumberExistsGetResult:
        pass


DISABLE_FLAGS = (
    "disable_create_code_post",
    "disable_resend_code_post",
    "disable_consume_code_post",
    "disable_email_exists_get",
    "disable_phone_number_exists_get",
)


class APIInterfaceWrapper(APIInterface):
    def __init__(self, original: APIInterface) -> None:
        self.original = original
        # A flag raised on the wrapper class wins; otherwise inherit from the wrapped stage.
        for flag in DISABLE_FLAGS:
            setattr(self, flag, getattr(type(self), flag) or getattr(original, flag))

    async def create_code_post(self, email, phone_number, options, user_context):
        return await self.original.create_code_post(email, phone_number, options, user_context)

    async def resend_code_post(self, device_id, pre_auth_session_id, options, user_context):
        return await self.original.resend_code_post(
            device_id, pre_auth_session_id, options, user_context
        )

    async def consume_code_post(self, pre_auth_session_id, credentials, options, user_context):
        return await self.original.consume_code_post(
            pre_auth_session_id, credentials, options, user_context
        )

    async def email_exists_get(self, email, options, user_context):
        return await self.original.email_exists_get(email, options, user_context)

    async def phone_number_exists_get(self, phone_number, options, user_context):
        return await self.original.phone_number_exists_get(phone_number, options, user_context)
