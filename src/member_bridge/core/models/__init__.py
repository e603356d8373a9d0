"""Core models for the member bridge."""

from .assertion import ExternalIdentityAssertion
from .session import SESSION_TOKEN_TYPE, SessionClaims, SessionCredential

__all__ = [
    "ExternalIdentityAssertion",
    "SessionClaims",
    "SessionCredential",
    "SESSION_TOKEN_TYPE",
]
