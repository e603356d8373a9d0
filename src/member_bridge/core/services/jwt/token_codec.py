"""Signing and verification of bridge assertions and member sessions."""

import time
from collections.abc import Callable
from typing import Any

from authlib.jose import JoseError, JsonWebToken
from loguru import logger

from src.member_bridge.core.exceptions import InvalidToken

# Registered time claims managed by the codec itself
_TIME_CLAIMS = frozenset({"iat", "exp", "nbf"})


class TokenCodec:
    """Compact, time-bounded, tamper-evident tokens over a pre-shared secret.

    The same secret is shared with the bridge service, so tokens minted here
    are verifiable there and vice versa. Changing the secret invalidates every
    outstanding token; there is no rotation support.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        leeway: int = 0,
        require_exp: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret not configured")
        self._secret = secret
        self._algorithm = algorithm
        self._leeway = leeway
        self._require_exp = require_exp
        self._clock = clock
        # Only the configured HMAC algorithm is accepted on decode
        self._jwt = JsonWebToken([algorithm])

    def _now(self) -> int:
        return int(self._clock())

    def sign(self, payload: dict[str, Any], ttl: int) -> str:
        """Sign ``payload`` into a token that expires ``ttl`` seconds from now.

        Args:
            payload: JSON-serialisable claims. ``iat``, ``exp`` and ``nbf`` are
                reserved and overwritten.
            ttl: Lifetime in seconds.

        Returns:
            Compact JWT string
        """
        token, _ = self.sign_with_expiry(payload, ttl)
        return token

    def sign_with_expiry(self, payload: dict[str, Any], ttl: int) -> tuple[str, int]:
        """Like ``sign`` but also return the absolute expiry (epoch seconds)."""
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        now = self._now()
        claims = {k: v for k, v in payload.items() if k not in _TIME_CLAIMS}
        claims.update({"iat": now, "exp": now + ttl})

        header = {"alg": self._algorithm, "typ": "JWT"}
        try:
            token = self._jwt.encode(header, claims, self._secret)
        except JoseError as e:
            raise ValueError(f"JWT encoding failed: {e}") from e
        token = token.decode() if isinstance(token, bytes) else token
        return token, claims["exp"]

    def verify(self, token: str) -> dict[str, Any]:
        """Verify ``token`` and return its payload without the time claims.

        Raises:
            InvalidToken: bad signature, malformed token, missing or past expiry
        """
        if not token or not isinstance(token, str):
            raise InvalidToken("Empty token")

        claims_options = {"exp": {"essential": True}} if self._require_exp else None
        try:
            claims = self._jwt.decode(token, self._secret, claims_options=claims_options)
            claims.validate(now=self._now(), leeway=self._leeway)
        except (JoseError, ValueError, TypeError) as exc:
            logger.debug("Token verification failed: {}", type(exc).__name__)
            raise InvalidToken(f"Invalid token: {exc}") from exc

        return {k: v for k, v in claims.items() if k not in _TIME_CLAIMS}
