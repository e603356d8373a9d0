"""Session credential models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Marks a token as a member session so it cannot be replayed as a bridge assertion
SESSION_TOKEN_TYPE = "member_session"


class SessionClaims(BaseModel):
    """Claims carried by a member session credential."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    member_id: str = Field(alias="memberId", description="Local member id")
    email: str = Field(description="Canonical email at issue time")
    name: str | None = Field(default=None, description="Member display name")
    did: str | None = Field(default=None, description="Decentralized identifier")
    handle: str | None = Field(default=None, description="Provider handle")
    provider: str = Field(description="Provider that authenticated the member")
    token_type: Literal["member_session"] = Field(
        default=SESSION_TOKEN_TYPE, alias="typ", description="Credential kind marker"
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class SessionCredential(BaseModel):
    """A signed session token plus what the transport needs to deliver it."""

    token: str = Field(description="Signed session JWT")
    claims: SessionClaims = Field(description="Claims embedded in the token")
    expires_at: int = Field(description="Absolute expiry, epoch seconds")
    max_age: int = Field(description="Lifetime in seconds, for the cookie Max-Age")
