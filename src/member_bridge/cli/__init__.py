"""Command line interface for the member OAuth bridge."""

from pathlib import Path

import typer

from .member_commands import members_app
from .token_commands import auth_url, inspect_token, mint_assertion, serve
from .utils import load_cli_config

app = typer.Typer(
    help="🔑 Member OAuth bridge tools",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def _load_config(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config.yaml (defaults to $MEMBER_BRIDGE_CONFIG or ./config.yaml)",
        dir_okay=False,
    ),
) -> None:
    load_cli_config(config)


# Register commands
app.command("auth-url")(auth_url)
app.command("mint-assertion")(mint_assertion)
app.command("inspect-token")(inspect_token)
app.command("serve")(serve)
app.add_typer(members_app, name="members")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
