"""Authentication routes for the OAuth login flow and the user's profile."""

import logging
from datetime import datetime
from typing import Annotated

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from podstudio.config import Config
from podstudio.domain.auth.command.login import (
    CompleteLogin,
    CompleteLoginHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from podstudio.domain.auth.command.profile import (
    ReinferProfile,
    ReinferProfileHandler,
    UpdateProfile,
    UpdateProfileHandler,
)
from podstudio.domain.auth.model.demographics import Demographics
from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.model.value import CurrentUser
from podstudio.domain.auth.port.provider_registry import ProviderRegistry
from podstudio.domain.auth.service.account import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"], route_class=DishkaRoute)


class UserResponse(BaseModel):
    """User as exposed to clients; provider credentials are never included."""

    id: str
    external_id: str
    email: str | None
    name: str
    profile_picture_url: str | None
    persona: str | None
    vertical: str | None
    profile_completed: bool
    created_at: datetime
    updated_at: datetime | None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            external_id=user.external_id,
            email=user.email,
            name=user.name,
            profile_picture_url=user.profile_picture_url,
            persona=user.persona,
            vertical=user.vertical,
            profile_completed=user.profile_completed,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ProfileUpdateRequest(BaseModel):
    persona: str
    vertical: str


class ReinferResponse(BaseModel):
    user: UserResponse
    inferred: Demographics


class LogoutResponse(BaseModel):
    message: str


def _callback_url(request: Request, config: Config, provider: str) -> str:
    """Callback URL registered with the provider; must match in both legs."""
    if config.auth.callback_url:
        return config.auth.callback_url
    return str(request.url_for("handle_oauth_callback", provider=provider))


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: FromDishka[CurrentUser],
    account_service: FromDishka[AccountService],
) -> UserResponse:
    """Get the authenticated user."""
    user = await account_service.get_user(current_user.user_id)
    return UserResponse.from_user(user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    handler: FromDishka[UpdateProfileHandler],
) -> UserResponse:
    """Set persona and vertical."""
    result = await handler.run(UpdateProfile(persona=body.persona, vertical=body.vertical))
    return UserResponse.from_user(result.user)


@router.post("/profile/reinfer", response_model=ReinferResponse)
async def reinfer_profile(handler: FromDishka[ReinferProfileHandler]) -> ReinferResponse:
    """Re-run persona/vertical inference from the current provider profile."""
    result = await handler.run(ReinferProfile())
    return ReinferResponse(user=UserResponse.from_user(result.user), inferred=result.inferred)


@router.post("/logout", response_model=LogoutResponse)
async def logout() -> LogoutResponse:
    """Session tokens are stateless; the client discards its token."""
    return LogoutResponse(message="Logged out successfully")


@router.get("/{provider}")
async def initiate_login(
    request: Request,
    provider: str,
    config: FromDishka[Config],
    handler: FromDishka[InitiateLoginHandler],
    registry: FromDishka[ProviderRegistry],
    token: Annotated[str | None, Query()] = None,
) -> Response:
    """Initiate OAuth login flow.

    Redirects to the identity provider's authorization page, or straight to
    the frontend when a still-valid session token is presented.
    """
    # Validate provider is configured
    if not registry.is_available(provider):
        available = registry.available_providers()
        raise HTTPException(
            status_code=400,
            detail={
                "code": "unknown_provider",
                "message": f"Unknown provider: {provider}. Available: {', '.join(available) or 'none'}",
            },
        )

    result = await handler.run(
        InitiateLogin(
            provider=provider,
            callback_url=_callback_url(request, config, provider),
            token=token,
        )
    )
    return RedirectResponse(url=result.redirect_url, status_code=302)


@router.get("/{provider}/callback", name="handle_oauth_callback")
async def handle_oauth_callback(
    request: Request,
    provider: str,
    config: FromDishka[Config],
    handler: FromDishka[CompleteLoginHandler],
    code: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    error: Annotated[str | None, Query()] = None,
    error_description: Annotated[str | None, Query()] = None,
) -> Response:
    """Handle OAuth callback from identity provider.

    Always redirects to the frontend: ``/auth/callback?token=...`` on success,
    ``/auth/error?message=...&code=...`` otherwise.
    """
    result = await handler.run(
        CompleteLogin(
            provider=provider,
            callback_url=_callback_url(request, config, provider),
            code=code,
            state=state,
            error=error,
            error_description=error_description,
        )
    )
    if result.user_id:
        logger.info("OAuth complete, user authenticated: user_id=%s, provider=%s", result.user_id, provider)
    return RedirectResponse(url=result.redirect_url, status_code=302)
