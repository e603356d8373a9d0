from authlib.jose import JsonWebToken

FROZEN_NOW = 1_700_000_000


class FakeClock:
    """Settable time source for ``TokenCodec``."""

    def __init__(self, now: float = FROZEN_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def encode_raw(payload: dict, secret: str, alg: str = "HS256") -> str:
    """Encode a JWT without any of the codec's claim handling."""
    token = JsonWebToken([alg]).encode({"alg": alg, "typ": "JWT"}, payload, secret)
    return token.decode() if isinstance(token, bytes) else token
