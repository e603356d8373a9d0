"""Core services exports."""

from .database.db_session import DbSessionService
from .identity.resolver import (
    IdentityResolver,
    is_placeholder_email,
    synthesize_placeholder_email,
)
from .jwt.token_codec import TokenCodec
from .members.profile_completion import ProfileCompletionService
from .members.reconciler import MemberReconciler, ReconcileResult
from .oauth_bridge import CallbackOutcome, OAuthBridgeService
from .session.session_issuer import SESSION_TTL_SECONDS, SessionIssuer

__all__ = [
    # Tokens
    "TokenCodec",
    # Identity
    "IdentityResolver",
    "synthesize_placeholder_email",
    "is_placeholder_email",
    # Members
    "MemberReconciler",
    "ReconcileResult",
    "ProfileCompletionService",
    # Sessions
    "SessionIssuer",
    "SESSION_TTL_SECONDS",
    # Workflow
    "OAuthBridgeService",
    "CallbackOutcome",
    # Database
    "DbSessionService",
]
