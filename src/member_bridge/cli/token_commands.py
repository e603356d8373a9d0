"""Bridge URL and token commands."""

from enum import Enum

import typer
from rich.table import Table

from src.member_bridge.core.exceptions import BridgeError
from src.member_bridge.core.services import OAuthBridgeService, TokenCodec
from src.member_bridge.core.storage import InMemoryMemberStore
from src.member_bridge.runtime.config.config_data import ConfigData
from src.member_bridge.runtime.context import get_config

from .utils import console


class TokenKind(str, Enum):
    """Kinds of token the bridge deals in."""

    ASSERTION = "assertion"
    SESSION = "session"


def _codec(config: ConfigData) -> TokenCodec:
    return TokenCodec(
        config.bridge.shared_secret,
        algorithm=config.jwt.algorithm,
        leeway=config.jwt.clock_skew,
        require_exp=config.jwt.require_exp,
    )


def _bridge(config: ConfigData) -> OAuthBridgeService:
    # URL resolution and token checks never touch the member store
    return OAuthBridgeService.from_config(
        config.bridge, config.jwt, InMemoryMemberStore(), codec=_codec(config)
    )


def auth_url(
    provider: str = typer.Argument(..., help="Identity provider, e.g. google or atproto"),
    handle: str | None = typer.Option(None, "--handle", help="Provider handle (atproto)"),
) -> None:
    """Print the bridge URL that starts a provider handshake."""
    try:
        url = _bridge(get_config()).begin(provider, handle)
    except BridgeError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(code=1) from e
    typer.echo(url)


def mint_assertion(
    provider: str = typer.Option(..., "--provider", "-p", help="Provider claim"),
    did: str | None = typer.Option(None, "--did", help="Decentralized identifier"),
    handle: str | None = typer.Option(None, "--handle", help="Provider handle"),
    email: str | None = typer.Option(None, "--email", "-e", help="Verified email"),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
    ttl: int = typer.Option(300, "--ttl", min=1, help="Lifetime in seconds"),
) -> None:
    """
    Sign an identity assertion the way the bridge does.

    Useful for exercising the callback route locally without running the
    bridge service.
    """
    if not email and not did:
        console.print("[red]❌ An assertion needs --email or --did[/red]")
        raise typer.Exit(code=1)

    claims = {
        "provider": provider,
        "did": did,
        "handle": handle,
        "email": email,
        "name": name,
    }
    token = _codec(get_config()).sign(
        {k: v for k, v in claims.items() if v is not None}, ttl
    )
    typer.echo(token)


def inspect_token(
    token: str = typer.Argument(..., help="Token to verify"),
    kind: TokenKind = typer.Option(TokenKind.ASSERTION, "--kind", "-k", help="Token kind"),
) -> None:
    """Verify a token with the configured secret and show its claims."""
    bridge = _bridge(get_config())
    try:
        if kind == TokenKind.SESSION:
            claims = bridge.sessions.verify(token).to_payload()
        else:
            claims = bridge.codec.verify(token)
    except BridgeError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title=f"{kind.value.capitalize()} claims")
    table.add_column("Claim", style="cyan")
    table.add_column("Value", style="green")
    for key, value in claims.items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


def serve(
    host: str | None = typer.Option(None, help="Host to bind (defaults to app.host)"),
    port: int | None = typer.Option(None, help="Port to bind (defaults to app.port)"),
    reload: bool = typer.Option(False, help="Enable auto-reload on code changes"),
) -> None:
    """Run the HTTP application with uvicorn."""
    import uvicorn

    config = get_config()
    bind_host = host or config.app.host
    bind_port = port or config.app.port
    console.print(
        f"[bold green]Serving member bridge on http://{bind_host}:{bind_port}"
        f"{config.app.mount_path}[/bold green]"
    )
    uvicorn.run(
        "src.member_bridge.api.http.app:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_config=None,
    )
