"""Request-level OAuth bridge workflow."""

from dataclasses import dataclass

from loguru import logger

from src.member_bridge.core.exceptions import MissingCallbackParameters
from src.member_bridge.core.models import ExternalIdentityAssertion, SessionCredential
from src.member_bridge.core.services.identity.resolver import IdentityResolver
from src.member_bridge.core.services.jwt.token_codec import TokenCodec
from src.member_bridge.core.services.members.profile_completion import (
    ProfileCompletionService,
)
from src.member_bridge.core.services.members.reconciler import MemberReconciler
from src.member_bridge.core.services.session.session_issuer import SessionIssuer
from src.member_bridge.core.storage.member_store import MemberStore
from src.member_bridge.entities.core.member import Member
from src.member_bridge.runtime.config.config_data import BridgeConfig, JWTConfig


@dataclass(frozen=True)
class CallbackOutcome:
    """Either a session to deliver, or a token to continue profile completion with."""

    member: Member
    session: SessionCredential | None = None
    completion_token: str | None = None

    @property
    def needs_email(self) -> bool:
        return self.completion_token is not None


class OAuthBridgeService:
    """Composes the codec, resolver, reconciler, completion flow and issuer."""

    def __init__(
        self,
        codec: TokenCodec,
        resolver: IdentityResolver,
        reconciler: MemberReconciler,
        completion: ProfileCompletionService,
        session_issuer: SessionIssuer,
    ):
        self.codec = codec
        self.resolver = resolver
        self.reconciler = reconciler
        self.completion = completion
        self.sessions = session_issuer

    @classmethod
    def from_config(
        cls,
        bridge_config: BridgeConfig,
        jwt_config: JWTConfig,
        member_store: MemberStore,
        codec: TokenCodec | None = None,
    ) -> "OAuthBridgeService":
        codec = codec or TokenCodec(
            bridge_config.shared_secret,
            algorithm=jwt_config.algorithm,
            leeway=jwt_config.clock_skew,
            require_exp=jwt_config.require_exp,
        )
        resolver = IdentityResolver(bridge_config, member_store)
        sessions = SessionIssuer(codec)
        return cls(
            codec=codec,
            resolver=resolver,
            reconciler=MemberReconciler(resolver, member_store),
            completion=ProfileCompletionService(codec, resolver, member_store, sessions),
            session_issuer=sessions,
        )

    def begin(self, provider: str, handle: str | None = None) -> str:
        """Bridge URL that starts the handshake for ``provider``."""
        return self.resolver.resolve_auth_url(provider, handle)

    async def handle_callback(self, token: str | None, provider: str | None) -> CallbackOutcome:
        """Verify the bridge's assertion, reconcile the member, and mint a session.

        DID-only identities without an email get a ``completion_token`` (the
        same bridge token) instead of a session.
        """
        if not token or not provider:
            raise MissingCallbackParameters("Missing OAuth callback parameters")

        assertion = ExternalIdentityAssertion.from_claims(self.codec.verify(token))
        if assertion.provider != provider:
            logger.warning(
                "Callback provider {} disagrees with signed assertion provider {}; using the signed value",
                provider,
                assertion.provider,
            )

        result = await self.reconciler.reconcile(assertion)
        if result.needs_email:
            return CallbackOutcome(member=result.member, completion_token=token)

        return CallbackOutcome(
            member=result.member, session=self.sessions.issue(result.member, assertion)
        )

    async def complete_profile(
        self, token: str | None, email: str | None = None, subscribe: bool = False
    ) -> tuple[Member, SessionCredential]:
        if not token:
            raise MissingCallbackParameters("Missing token")
        return await self.completion.finish(token, email, subscribe)
