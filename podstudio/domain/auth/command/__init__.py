from .login import (
    CompleteLogin,
    CompleteLoginHandler,
    CompleteLoginResult,
    InitiateLogin,
    InitiateLoginHandler,
    InitiateLoginResult,
)
from .profile import (
    ReinferProfile,
    ReinferProfileHandler,
    ReinferProfileResult,
    UpdateProfile,
    UpdateProfileHandler,
    UpdateProfileResult,
)

__all__ = [
    "CompleteLogin",
    "CompleteLoginHandler",
    "CompleteLoginResult",
    "InitiateLogin",
    "InitiateLoginHandler",
    "InitiateLoginResult",
    "ReinferProfile",
    "ReinferProfileHandler",
    "ReinferProfileResult",
    "UpdateProfile",
    "UpdateProfileHandler",
    "UpdateProfileResult",
]
