"""
Access gate: bearer token verification, trust classification and action tokens.

One auth token serves two trust classes. Tokens carrying ``isWebsiteKey=true``
are browser sessions and are only honoured from an allow-listed Origin; all
other tokens are API keys. Sensitive calls additionally carry a short-lived
action token whose ``iat`` must fall inside the freshness window.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError

from dbconnect.config import Settings, get_settings
from dbconnect.core.errors import Forbidden, Unauthorized
from dbconnect.core.replay_guard import ActionTokenReplayGuard
from dbconnect.core.security import decode_token
from dbconnect.models.identity import (
    ActionVerified,
    ApiKeyIdentity,
    Identity,
    WebsiteSession,
)

logger = logging.getLogger(__name__)

STALE_ACTION_TOKEN = "stale-or-invalid-timestamp"


class AccessGate:
    """Verifies credentials and derives the caller's identity."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        replay_guard: Optional[ActionTokenReplayGuard] = None,
    ):
        self.settings = settings or get_settings()
        self.replay_guard = replay_guard

    def authenticate(self, token: Optional[str], origin: Optional[str] = None) -> Identity:
        """
        Verify an auth token and classify the caller.

        Args:
            token: Signed auth token from the request header
            origin: Declared request Origin, checked for website sessions

        Returns:
            WebsiteSession or ApiKeyIdentity

        Raises:
            Unauthorized: If the token is missing, expired or invalid
            Forbidden: If a website session token comes from a foreign origin
        """
        if not token:
            raise Unauthorized("missing")

        try:
            claims = decode_token(token)
        except ExpiredSignatureError:
            raise Unauthorized("expired")
        except JWTError:
            raise Unauthorized("invalid")

        subject_id = claims.get("userId") or claims.get("sub")
        if not subject_id:
            raise Unauthorized("invalid")

        if claims.get("isWebsiteKey") is True:
            if not origin or origin not in self.settings.website_origins:
                logger.warning("Rejected website token for subject %s from origin %r", subject_id, origin)
                raise Forbidden(
                    "origin",
                    message="Origin is not allowed for website tokens",
                    origin=origin,
                )
            return WebsiteSession(subject_id=str(subject_id), origin=origin, claims=claims)

        return ApiKeyIdentity(subject_id=str(subject_id), claims=claims)

    def is_fresh(self, issued_at: Any, now: Optional[float] = None) -> bool:
        """Whether ``issued_at`` (epoch seconds) lies within the freshness window."""
        if isinstance(issued_at, bool) or not isinstance(issued_at, (int, float)):
            return False
        now = time.time() if now is None else now
        age = now - issued_at
        return 0 <= age <= self.settings.action_token_max_age_seconds

    async def verify_action(
        self,
        identity: Identity,
        action_token: Optional[str],
        now: Optional[float] = None,
    ) -> ActionVerified:
        """
        Verify an embedded action token for an already authenticated caller.

        Raises:
            Forbidden: If the token is missing, invalid, stale or replayed
        """
        if not action_token:
            raise Forbidden("missing-action-token", message="Action token required")

        try:
            claims = decode_token(action_token)
        except ExpiredSignatureError:
            raise Forbidden(STALE_ACTION_TOKEN, message="Stale or invalid timestamp in action token")
        except JWTError:
            raise Forbidden("invalid-action-token", message="Action token is not valid")

        issued_at = claims.get("iat")
        if not self.is_fresh(issued_at, now):
            raise Forbidden(STALE_ACTION_TOKEN, message="Stale or invalid timestamp in action token")

        if self.replay_guard is not None and not await self.replay_guard.claim(action_token):
            logger.warning("Replayed action token for subject %s", identity.subject_id)
            raise Forbidden("replayed", message="Action token has already been used")

        return ActionVerified(
            identity=identity,
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            claims=claims,
        )
