"""
Authentication request/response schemas.
"""
from typing import Optional

from pydantic import BaseModel, Field

from dbconnect.models.identity import TrustClass


class ActionRequest(BaseModel):
    """Body of a sensitive call: the embedded action token."""
    request: str = Field(..., description="Short-lived action token")


class IdentityInfo(BaseModel):
    """Current caller information."""
    subject_id: str = Field(..., description="Subject (user ID)")
    trust_class: TrustClass = Field(..., description="Website session or API key")
    origin: Optional[str] = Field(None, description="Checked origin for website sessions")


class TokenRefreshResponse(BaseModel):
    """Token refresh response."""
    auth_token: str = Field(..., alias="authToken", description="New auth token")
    expires_in: int = Field(..., alias="expiresIn", description="Token expiration time in seconds")

    class Config:
        populate_by_name = True
