# recipe/config.py
"""
Passwordless recipe configuration.

``PasswordlessConfig`` is what an application hands in. ``normalise_config``
merges it with the defaults and turns it into an immutable
``NormalisedConfig``, raising ConfigurationError for anything that would only
blow up later at request time.
"""

import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

import phonenumbers

from passwordless_engine.core.exceptions import ConfigurationError
from passwordless_engine.schemas.passwordless import FlowType

if TYPE_CHECKING:
    from passwordless_engine.recipe.interfaces import APIInterface, RecipeInterface

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (value) -> error message or None
Validator = Callable[[Any], "str | None | Awaitable[str | None]"]

# (email | phone_number, user_input_code, url_with_link_code, code_lifetime,
#  pre_auth_session_id, user_context) -> None, raising on failure
SendFunction = Callable[
    [str, str | None, str | None, int, str, dict[str, Any]], Awaitable[None]
]

EMAIL_REGEX = re.compile(
    r'^(([^<>()\[\]\\.,;:\s@"]+(\.[^<>()\[\]\\.,;:\s@"]+)*)|(".+"))@'
    r"((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)

FLOW_TYPE_ERROR = (
    'FlowType config must be provided and must be one of "USER_INPUT_CODE", '
    '"MAGIC_LINK" or "USER_INPUT_CODE_AND_MAGIC_LINK"'
)
CONTACT_METHOD_ERROR = (
    "Please enable only one of ContactMethodEmail, ContactMethodPhone or ContactMethodEmailOrPhone"
)


async def maybe_await(value: "T | Awaitable[T]") -> T:
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


def default_validate_email_address(value: Any) -> str | None:
    if not isinstance(value, str):
        return "Development bug: Please make sure the email field yields a string"
    if EMAIL_REGEX.match(value) is None:
        return "Email is invalid"
    return None


def default_validate_phone_number(value: Any) -> str | None:
    if not isinstance(value, str):
        return "Development bug: Please make sure the phoneNumber field yields a string"
    try:
        parsed = phonenumbers.parse(value, None)
    except phonenumbers.NumberParseException:
        return "Phone number is invalid"
    if not phonenumbers.is_valid_number(parsed):
        return "Phone number is invalid"
    return None


class ContactMethod(str, Enum):
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    EMAIL_OR_PHONE = "EMAIL_OR_PHONE"


@dataclass
class ContactMethodEmail:
    create_and_send_custom_email: SendFunction | None = None
    validate_email_address: Validator | None = None


@dataclass
class ContactMethodPhone:
    create_and_send_custom_text_message: SendFunction | None = None
    validate_phone_number: Validator | None = None


@dataclass
class ContactMethodEmailOrPhone:
    create_and_send_custom_email: SendFunction | None = None
    create_and_send_custom_text_message: SendFunction | None = None
    validate_email_address: Validator | None = None
    validate_phone_number: Validator | None = None


@dataclass
class OverrideConfig:
    """
    Override chains. Each factory receives the previous implementation and
    returns the one to use instead; they are applied in list order.
    """

    functions: list[Callable[["RecipeInterface"], "RecipeInterface"]] = field(
        default_factory=list
    )
    apis: list[Callable[["APIInterface"], "APIInterface"]] = field(default_factory=list)


@dataclass(frozen=True)
class AppInfo:
    app_name: str
    website_domain: str
    website_base_path: str = "/auth"
    api_base_path: str = "/auth"

    def __post_init__(self) -> None:
        object.__setattr__(self, "website_domain", self.website_domain.rstrip("/"))
        object.__setattr__(self, "website_base_path", _normalise_path(self.website_base_path))
        object.__setattr__(self, "api_base_path", _normalise_path(self.api_base_path))


def _normalise_path(path: str) -> str:
    path = path.strip().rstrip("/")
    if path and not path.startswith("/"):
        path = f"/{path}"
    return path


@dataclass
class PasswordlessConfig:
    flow_type: FlowType | str
    contact_method_email: ContactMethodEmail | None = None
    contact_method_phone: ContactMethodPhone | None = None
    contact_method_email_or_phone: ContactMethodEmailOrPhone | None = None
    get_custom_user_input_code: Callable[[dict[str, Any]], "str | Awaitable[str]"] | None = None
    get_link_domain_and_path: (
        Callable[[str | None, str | None, dict[str, Any]], "str | Awaitable[str]"] | None
    ) = None
    override: OverrideConfig | None = None


@dataclass(frozen=True)
class NormalisedConfig:
    app_info: AppInfo
    flow_type: FlowType
    contact_method: ContactMethod
    validate_email_address: Validator | None
    validate_phone_number: Validator | None
    create_and_send_custom_email: SendFunction | None
    create_and_send_custom_text_message: SendFunction | None
    get_link_domain_and_path: Callable[[str | None, str | None, dict[str, Any]], Any]
    get_custom_user_input_code: Callable[[dict[str, Any]], Any] | None
    override: OverrideConfig

    @property
    def email_enabled(self) -> bool:
        return self.contact_method is ContactMethod.EMAIL

    @property
    def phone_enabled(self) -> bool:
        return self.contact_method is ContactMethod.PHONE

    @property
    def email_or_phone_enabled(self) -> bool:
        return self.contact_method is ContactMethod.EMAIL_OR_PHONE

    @property
    def sends_magic_link(self) -> bool:
        return self.flow_type in (FlowType.MAGIC_LINK, FlowType.USER_INPUT_CODE_AND_MAGIC_LINK)

    @property
    def sends_user_input_code(self) -> bool:
        return self.flow_type in (
            FlowType.USER_INPUT_CODE,
            FlowType.USER_INPUT_CODE_AND_MAGIC_LINK,
        )

    async def validate_email(self, email: str) -> str | None:
        if self.validate_email_address is None:
            return None
        return await maybe_await(self.validate_email_address(email))

    async def validate_phone(self, phone_number: str) -> str | None:
        if self.validate_phone_number is None:
            return None
        return await maybe_await(self.validate_phone_number(phone_number))


def _parse_flow_type(value: FlowType | str) -> FlowType:
    if isinstance(value, FlowType):
        return value
    try:
        return FlowType(value)
    except ValueError as exc:
        raise ConfigurationError(FLOW_TYPE_ERROR) from exc


def _require(function: Any, name: str, method: str) -> Any:
    if function is None:
        raise ConfigurationError(f"Please provide {name} since you enabled {method}")
    return function


def normalise_config(config: PasswordlessConfig, app_info: AppInfo) -> NormalisedConfig:
    flow_type = _parse_flow_type(config.flow_type)

    enabled = [
        method
        for method in (
            config.contact_method_email,
            config.contact_method_phone,
            config.contact_method_email_or_phone,
        )
        if method is not None
    ]
    if len(enabled) != 1:
        raise ConfigurationError(CONTACT_METHOD_ERROR)

    validate_email_address: Validator | None = None
    validate_phone_number: Validator | None = None
    send_email: SendFunction | None = None
    send_text_message: SendFunction | None = None

    if config.contact_method_email is not None:
        contact_method = ContactMethod.EMAIL
        email_cfg = config.contact_method_email
        send_email = _require(
            email_cfg.create_and_send_custom_email,
            "create_and_send_custom_email",
            "ContactMethodEmail",
        )
        validate_email_address = email_cfg.validate_email_address or default_validate_email_address

    elif config.contact_method_phone is not None:
        contact_method = ContactMethod.PHONE
        phone_cfg = config.contact_method_phone
        send_text_message = _require(
            phone_cfg.create_and_send_custom_text_message,
            "create_and_send_custom_text_message",
            "ContactMethodPhone",
        )
        validate_phone_number = phone_cfg.validate_phone_number or default_validate_phone_number

    else:
        contact_method = ContactMethod.EMAIL_OR_PHONE
        either_cfg = config.contact_method_email_or_phone or ContactMethodEmailOrPhone()
        send_email = _require(
            either_cfg.create_and_send_custom_email,
            "create_and_send_custom_email",
            "ContactMethodEmailOrPhone",
        )
        send_text_message = _require(
            either_cfg.create_and_send_custom_text_message,
            "create_and_send_custom_text_message",
            "ContactMethodEmailOrPhone",
        )
        validate_email_address = either_cfg.validate_email_address or default_validate_email_address
        validate_phone_number = either_cfg.validate_phone_number or default_validate_phone_number

    def default_link_domain_and_path(
        email: str | None, phone_number: str | None, user_context: dict[str, Any]
    ) -> str:
        return f"{app_info.website_domain}{app_info.website_base_path}/verify"

    get_link_domain_and_path = config.get_link_domain_and_path or default_link_domain_and_path

    logger.debug(
        f"[Passwordless] Config normalised. contact_method={contact_method.value} "
        f"flow_type={flow_type.value}"
    )

    return NormalisedConfig(
        app_info=app_info,
        flow_type=flow_type,
        contact_method=contact_method,
        validate_email_address=validate_email_address,
        validate_phone_number=validate_phone_number,
        create_and_send_custom_email=send_email,
        create_and_send_custom_text_message=send_text_message,
        get_link_domain_and_path=get_link_domain_and_path,
        get_custom_user_input_code=config.get_custom_user_input_code,
        override=config.override or OverrideConfig(),
    )
