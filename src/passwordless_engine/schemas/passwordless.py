# schemas/passwordless.py
"""
Pydantic models for the passwordless flow.

Entities mirror what the auth core returns (camelCase on the wire).
Outcome models carry a ``status`` discriminator; they are values, never
raised. ``to_json()`` produces the exact body sent back to the frontend.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel


class FlowType(str, Enum):
    USER_INPUT_CODE = "USER_INPUT_CODE"
    MAGIC_LINK = "MAGIC_LINK"
    USER_INPUT_CODE_AND_MAGIC_LINK = "USER_INPUT_CODE_AND_MAGIC_LINK"


class CoreModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class User(CoreModel):
    id: str
    email: str | None = None
    phone_number: str | None = None
    time_joined: int


class Code(CoreModel):
    code_id: str
    time_created: int
    code_lifetime: int


class Device(CoreModel):
    pre_auth_session_id: str
    failed_code_input_attempt_count: int
    email: str | None = None
    phone_number: str | None = None
    codes: list[Code] = Field(default_factory=list)


class NewCode(CoreModel):
    pre_auth_session_id: str
    code_id: str
    device_id: str
    user_input_code: str
    link_code: str
    code_lifetime: int
    time_created: int


# ---------------------------------------------------------------------------
# Recipe (core) outcomes
# ---------------------------------------------------------------------------


class CreateCodeOkResult(NewCode):
    status: Literal["OK"] = "OK"


class ConsumeCodeOkResult(CoreModel):
    status: Literal["OK"] = "OK"
    created_new_user: bool
    user: User


class IncorrectUserInputCodeError(CoreModel):
    status: Literal["INCORRECT_USER_INPUT_CODE_ERROR"] = "INCORRECT_USER_INPUT_CODE_ERROR"
    failed_code_input_attempt_count: int
    maximum_code_input_attempts: int


class ExpiredUserInputCodeError(CoreModel):
    status: Literal["EXPIRED_USER_INPUT_CODE_ERROR"] = "EXPIRED_USER_INPUT_CODE_ERROR"
    failed_code_input_attempt_count: int
    maximum_code_input_attempts: int


class RestartFlowError(CoreModel):
    status: Literal["RESTART_FLOW_ERROR"] = "RESTART_FLOW_ERROR"


class UserInputCodeAlreadyUsedError(CoreModel):
    status: Literal["USER_INPUT_CODE_ALREADY_USED_ERROR"] = "USER_INPUT_CODE_ALREADY_USED_ERROR"


class UpdateUserOkResult(CoreModel):
    status: Literal["OK"] = "OK"


class UnknownUserIdError(CoreModel):
    status: Literal["UNKNOWN_USER_ID_ERROR"] = "UNKNOWN_USER_ID_ERROR"


class EmailAlreadyExistsError(CoreModel):
    status: Literal["EMAIL_ALREADY_EXISTS_ERROR"] = "EMAIL_ALREADY_EXISTS_ERROR"


class PhoneNumberAlreadyExistsError(CoreModel):
    status: Literal["PHONE_NUMBER_ALREADY_EXISTS_ERROR"] = "PHONE_NUMBER_ALREADY_EXISTS_ERROR"


ConsumeCodeResult = (
    ConsumeCodeOkResult | IncorrectUserInputCodeError | ExpiredUserInputCodeError | RestartFlowError
)
CreateNewCodeForDeviceResult = (
    CreateCodeOkResult | UserInputCodeAlreadyUsedError | RestartFlowError
)
UpdateUserResult = (
    UpdateUserOkResult | UnknownUserIdError | EmailAlreadyExistsError | PhoneNumberAlreadyExistsError
)


# ---------------------------------------------------------------------------
# API outcomes
# ---------------------------------------------------------------------------


class GeneralErrorResponse(CoreModel):
    status: Literal["GENERAL_ERROR"] = "GENERAL_ERROR"
    message: str


class CreateCodePostOkResult(CoreModel):
    status: Literal["OK"] = "OK"
    device_id: str
    pre_auth_session_id: str
    flow_type: FlowType


class ConsumeCodePostOkResult(CoreModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: Literal["OK"] = "OK"
    created_new_user: bool
    user: User
    session: Any = Field(default=None, exclude=True)


class ResendCodePostOkResult(CoreModel):
    status: Literal["OK"] = "OK"


class EmailExistsGetOkResult(CoreModel):
    status: Literal["OK"] = "OK"
    exists: bool


class PhoneNumberExistsGetOkResult(CoreModel):
    status: Literal["OK"] = "OK"
    exists: bool


CreateCodePostResult = CreateCodePostOkResult | GeneralErrorResponse
ConsumeCodePostResult = (
    ConsumeCodePostOkResult
    | IncorrectUserInputCodeError
    | ExpiredUserInputCodeError
    | RestartFlowError
    | GeneralErrorResponse
)
ResendCodePostResult = ResendCodePostOkResult | RestartFlowError | GeneralErrorResponse
EmailExistsGetResult = EmailExistsGetOkResult | GeneralErrorResponse
PhoneNumberExistsGetResult = PhoneNumberExistsGetOkResult | GeneralErrorResponse


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class RequestBody(BaseModel):
    """
    Raw request body. Every field is optional so that presence can be checked
    through ``model_fields_set``; present fields must be real JSON strings.
    """

    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")


class CreateCodeBody(RequestBody):
    email: StrictStr | None = None
    phone_number: StrictStr | None = None


class ConsumeCodeBody(RequestBody):
    pre_auth_session_id: StrictStr | None = None
    device_id: StrictStr | None = None
    user_input_code: StrictStr | None = None
    link_code: StrictStr | None = None


class ResendCodeBody(RequestBody):
    pre_auth_session_id: StrictStr | None = None
    device_id: StrictStr | None = None


# ---------------------------------------------------------------------------
# Validated inputs
# ---------------------------------------------------------------------------


class UserInputCodePath(CoreModel):
    kind: Literal["user_input_code"] = "user_input_code"
    device_id: str
    user_input_code: str


class LinkCodePath(CoreModel):
    kind: Literal["link_code"] = "link_code"
    link_code: str


class CreateCodeInput(CoreModel):
    email: str | None = None
    phone_number: str | None = None


class ConsumeCodeInput(CoreModel):
    pre_auth_session_id: str
    credentials: UserInputCodePath | LinkCodePath = Field(discriminator="kind")


class ResendCodeInput(CoreModel):
    pre_auth_session_id: str
    device_id: str


class SignInUpResult(CoreModel):
    pre_auth_session_id: str
    created_new_user: bool
    user: User
