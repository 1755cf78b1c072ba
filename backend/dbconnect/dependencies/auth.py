"""
Authentication dependencies for route protection.
"""
from typing import Annotated, Optional, Union

from fastapi import Depends, Request

from dbconnect.config import get_settings
from dbconnect.core.errors import Forbidden
from dbconnect.core.replay_guard import ActionTokenReplayGuard
from dbconnect.database.connections import get_redis_client
from dbconnect.models.identity import ActionVerified, Identity
from dbconnect.services.access_gate import AccessGate

# Methods whose requests may carry a JSON body with an action token
_BODY_METHODS = {"POST", "PUT", "PATCH"}


async def get_access_gate() -> AccessGate:
    """Dependency to get AccessGate instance."""
    settings = get_settings()
    replay_guard = None
    if settings.action_token_replay_guard:
        redis = await get_redis_client()
        replay_guard = ActionTokenReplayGuard(redis, settings.action_token_max_age_seconds)
    return AccessGate(settings, replay_guard)


async def read_action_token(request: Request) -> Optional[str]:
    """Extract the embedded action token (body field ``request``), if any."""
    if request.method not in _BODY_METHODS:
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("request"), str):
        return body["request"]
    return None


async def get_identity(
    request: Request,
    gate: Annotated[AccessGate, Depends(get_access_gate)],
) -> Identity:
    """
    Dependency to authenticate the caller from the auth token header.

    Raises:
        Unauthorized: If the token is missing, expired or invalid
        Forbidden: If a website token comes from a foreign origin
    """
    settings = get_settings()
    return gate.authenticate(
        request.headers.get(settings.auth_header_name),
        request.headers.get("origin"),
    )


async def get_caller(
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    gate: Annotated[AccessGate, Depends(get_access_gate)],
) -> Union[Identity, ActionVerified]:
    """
    Dependency returning the identity, upgraded to ActionVerified when the
    body carries an action token. A present but stale token is rejected.
    """
    action_token = await read_action_token(request)
    if action_token is None:
        return identity
    return await gate.verify_action(identity, action_token)


async def require_action(
    caller: Annotated[Union[Identity, ActionVerified], Depends(get_caller)],
) -> ActionVerified:
    """
    Dependency for sensitive routes: an action token is mandatory.

    Raises:
        Forbidden: If no action token was presented
    """
    if not isinstance(caller, ActionVerified):
        raise Forbidden("missing-action-token", message="Action token required")
    return caller


# Type aliases for cleaner route signatures
Caller = Annotated[Union[Identity, ActionVerified], Depends(get_caller)]
ActionCaller = Annotated[ActionVerified, Depends(require_action)]
