"""
Per-request caller identity derived from a verified auth token.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


class TrustClass(str, Enum):
    """How far the caller is trusted."""
    WEBSITE_SESSION = "website_session"
    API_KEY = "api_key"


@dataclass(frozen=True)
class WebsiteSession:
    """Browser session token whose request origin was checked against the allow-list."""
    subject_id: str
    origin: str
    claims: dict[str, Any] = field(default_factory=dict, compare=False)
    trust_class: TrustClass = field(default=TrustClass.WEBSITE_SESSION, init=False)


@dataclass(frozen=True)
class ApiKeyIdentity:
    """API-key client; no origin restriction."""
    subject_id: str
    claims: dict[str, Any] = field(default_factory=dict, compare=False)
    trust_class: TrustClass = field(default=TrustClass.API_KEY, init=False)


Identity = Union[WebsiteSession, ApiKeyIdentity]


@dataclass(frozen=True)
class ActionVerified:
    """An identity that also presented a fresh, valid action token."""
    identity: Identity
    issued_at: datetime
    claims: dict[str, Any] = field(default_factory=dict, compare=False)
