"""Member store inspection commands."""

import asyncio

import typer
from rich.table import Table

from src.member_bridge.core.exceptions import BridgeError
from src.member_bridge.core.services import synthesize_placeholder_email
from src.member_bridge.core.storage import build_member_store
from src.member_bridge.entities.core.member import Member
from src.member_bridge.runtime.context import get_config

from .utils import console

members_app = typer.Typer(help="Inspect members in the configured member store")


async def _find(email: str) -> Member | None:
    store = build_member_store(get_config())
    try:
        return await store.find_by_email(email)
    finally:
        await store.close()


@members_app.command("find")
def find_member(
    email: str | None = typer.Argument(None, help="Canonical email to look up"),
    did: str | None = typer.Option(None, "--did", help="Look up the placeholder member for a DID"),
) -> None:
    """Show the member stored under a canonical email or DID placeholder."""
    if did:
        email = synthesize_placeholder_email(did)
    if not email:
        console.print("[red]❌ Give an email or --did[/red]")
        raise typer.Exit(code=1)

    try:
        member = asyncio.run(_find(email))
    except BridgeError as e:
        console.print(f"[red]❌ Member store error: {e.message}[/red]")
        raise typer.Exit(code=1) from e

    if member is None:
        console.print(f"[yellow]No member found for {email}[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"Member {member.id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Email", member.email)
    table.add_row("Name", member.name or "")
    table.add_row("Note", member.note or "")
    table.add_row("Labels", ", ".join(member.labels))
    table.add_row("Subscribed", "✅" if member.subscribed else "❌")
    console.print(table)
