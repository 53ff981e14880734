from .passwordless import (
    Code,
    ConsumeCodeOkResult,
    CreateCodeOkResult,
    Device,
    ExpiredUserInputCodeError,
    FlowType,
    GeneralErrorResponse,
    IncorrectUserInputCodeError,
    NewCode,
    RestartFlowError,
    SignInUpResult,
    User,
)

__all__ = [
    "Code",
    "ConsumeCodeOkResult",
    "CreateCodeOkResult",
    "Device",
    "ExpiredUserInputCodeError",
    "FlowType",
    "GeneralErrorResponse",
    "IncorrectUserInputCodeError",
    "NewCode",
    "RestartFlowError",
    "SignInUpResult",
    "User",
]
