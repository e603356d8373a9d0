"""JWT service package."""

from .token_codec import TokenCodec

__all__ = ["TokenCodec"]
