"""Errors raised by the member bridge core.

Every error carries a coarse ``error_code`` that is safe to show to the
caller. Messages may contain detail for the server logs only.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base exception for member bridge errors."""

    error_code = "bridge_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__doc__ or self.error_code)
        self.message = message or self.__doc__ or self.error_code


class InvalidToken(BridgeError):
    """Token signature, format or expiry check failed."""

    error_code = "invalid_token"


class UnsupportedProvider(BridgeError):
    """The requested identity provider is not configured on the bridge."""

    error_code = "unsupported_provider"

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported OAuth provider: {provider}")
        self.provider = provider


class MissingHandle(BridgeError):
    """The provider needs a handle to start its handshake."""

    error_code = "missing_handle"

    def __init__(self, provider: str) -> None:
        super().__init__(f"Handle required for {provider} OAuth")
        self.provider = provider


class MissingSubjectIdentifier(BridgeError):
    """The assertion carries neither an email nor a DID."""

    error_code = "missing_subject"


class MissingCallbackParameters(BridgeError):
    """A bridge callback arrived without its token or provider."""

    error_code = "missing_parameters"


class InvalidEmail(BridgeError):
    """The supplied email address is not usable."""

    error_code = "invalid_email"


class InvalidProfileToken(BridgeError):
    """Only DID-bearing assertions can complete a profile."""

    error_code = "invalid_profile_token"


class MemberNotFound(BridgeError):
    """No member exists for the requested identity."""

    error_code = "member_not_found"


class MemberStoreError(BridgeError):
    """The member store failed or could not be reached."""

    error_code = "member_store_unavailable"


class DuplicateMemberError(MemberStoreError):
    """The member store already holds a member with this email."""

    error_code = "member_exists"

    def __init__(self, email: str | None = None) -> None:
        # The address stays on the instance; messages end up in logs
        super().__init__("Member already exists")
        self.email = email
