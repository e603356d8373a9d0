"""Identity assertions issued by the bridge service."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.member_bridge.core.exceptions import InvalidToken
from src.member_bridge.core.models.session import SESSION_TOKEN_TYPE


class ExternalIdentityAssertion(BaseModel):
    """Verified identity attributes for one external subject.

    Produced by the bridge, consumed once to reconcile a member, then embedded
    in the session credential. Expiry lives in the token, not here.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    provider: str = Field(description="Identity provider, e.g. 'google' or 'atproto'")
    did: str | None = Field(default=None, description="Decentralized identifier")
    handle: str | None = Field(default=None, description="Display handle (atproto)")
    email: str | None = Field(default=None, description="Verified email, if any")
    name: str | None = Field(default=None, description="Display name")

    @field_validator("did", "handle", "email", "name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "ExternalIdentityAssertion":
        """Build an assertion from verified token claims.

        Raises:
            InvalidToken: the claims do not describe an identity, or belong to
                a member session credential
        """
        if claims.get("typ") == SESSION_TOKEN_TYPE:
            raise InvalidToken("Session credentials are not identity assertions")
        try:
            return cls.model_validate(claims)
        except ValidationError as e:
            raise InvalidToken("Token is not an identity assertion") from e

    @property
    def display_name(self) -> str | None:
        return self.name or self.handle
