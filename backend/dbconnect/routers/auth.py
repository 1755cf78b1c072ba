"""
Authentication router for session introspection and token refresh.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from dbconnect.config import get_settings
from dbconnect.core.responses import envelope_response
from dbconnect.core.security import create_access_token
from dbconnect.dependencies.auth import ActionCaller, get_identity
from dbconnect.models.identity import Identity, WebsiteSession
from dbconnect.schemas.auth import ActionRequest, IdentityInfo, TokenRefreshResponse

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Claims re-issued by the token itself rather than copied over
_REGISTERED_CLAIMS = {"exp", "iat", "nbf", "sub", "userId", "isWebsiteKey"}


def _identity_info(identity: Identity) -> IdentityInfo:
    return IdentityInfo(
        subject_id=identity.subject_id,
        trust_class=identity.trust_class,
        origin=identity.origin if isinstance(identity, WebsiteSession) else None,
    )


@router.get("/me", summary="Get current caller info")
async def get_current_identity(
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
):
    """
    Describe the authenticated caller and its trust class.

    Requires the auth token header.
    """
    return envelope_response(
        status.HTTP_200_OK, True, "Identity resolved",
        method=request.method,
        data=_identity_info(identity).model_dump(mode="json"),
    )


@router.post("/refresh", summary="Refresh auth token")
async def refresh_token(
    request: Request,
    body: ActionRequest,
    caller: ActionCaller,
):
    """
    Issue a fresh auth token carrying the same claims.

    Requires the auth token header and a fresh action token in `request`.
    """
    settings = get_settings()
    identity = caller.identity
    extra = {k: v for k, v in identity.claims.items() if k not in _REGISTERED_CLAIMS}

    token = create_access_token(
        subject=identity.subject_id,
        is_website_key=isinstance(identity, WebsiteSession),
        extra_claims=extra,
    )
    result = TokenRefreshResponse(
        auth_token=token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )
    return envelope_response(
        status.HTTP_200_OK, True, "Token refreshed",
        method=request.method,
        data=result.model_dump(by_alias=True),
    )
