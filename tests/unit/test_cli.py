"""Command line interface."""

from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from src.member_bridge.cli import app
from src.member_bridge.core.services import TokenCodec
from src.member_bridge.runtime.context import get_context, set_context

_SECRET = "cli-secret"

_YAML = f"""
config:
  app:
    environment: test
  bridge:
    base_url: https://bridge.test
    shared_secret: {_SECRET}
  member_store:
    backend: memory
"""

runner = CliRunner()


@pytest.fixture
def cli_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    path = tmp_path / "config.yaml"
    path.write_text(_YAML)
    monkeypatch.setenv("MEMBER_BRIDGE_CONFIG", str(path))
    saved = get_context()
    yield path
    set_context(saved)


def _invoke(config: Path, *args: str):
    return runner.invoke(app, ["--config", str(config), *args])


def _last_line(output: str) -> str:
    return output.strip().splitlines()[-1]


class TestCli:
    def test_auth_url(self, cli_config: Path):
        result = _invoke(cli_config, "auth-url", "atproto", "--handle", "bob.bsky.social")

        assert result.exit_code == 0, result.output
        assert _last_line(result.stdout) == (
            "https://bridge.test/api/auth/atproto/init"
            "?handle=bob.bsky.social&ghost_callback=true"
        )

    def test_auth_url_missing_handle(self, cli_config: Path):
        result = _invoke(cli_config, "auth-url", "atproto")

        assert result.exit_code == 1

    def test_mint_assertion_verifies_with_shared_secret(self, cli_config: Path):
        result = _invoke(
            cli_config, "mint-assertion", "--provider", "google", "--email", "a@example.com"
        )

        assert result.exit_code == 0, result.output
        claims = TokenCodec(_SECRET).verify(_last_line(result.stdout))
        assert claims == {"provider": "google", "email": "a@example.com"}

    def test_mint_assertion_needs_subject(self, cli_config: Path):
        result = _invoke(cli_config, "mint-assertion", "--provider", "google")

        assert result.exit_code == 1

    def test_inspect_token(self, cli_config: Path):
        token = TokenCodec(_SECRET).sign({"provider": "atproto", "did": "did:plc:abc"}, 60)

        result = _invoke(cli_config, "inspect-token", token)

        assert result.exit_code == 0, result.output
        assert "did:plc:abc" in result.stdout

    def test_inspect_token_rejects_foreign_secret(self, cli_config: Path):
        token = TokenCodec("other-secret").sign({"provider": "google"}, 60)

        result = _invoke(cli_config, "inspect-token", token)

        assert result.exit_code == 1

    def test_inspect_assertion_as_session_fails(self, cli_config: Path):
        token = TokenCodec(_SECRET).sign({"provider": "google", "email": "a@example.com"}, 60)

        result = _invoke(cli_config, "inspect-token", token, "--kind", "session")

        assert result.exit_code == 1

    def test_members_find_unknown(self, cli_config: Path):
        result = _invoke(cli_config, "members", "find", "--did", "did:plc:abc")

        assert result.exit_code == 1
        assert "did_plc_abc@atproto.local" in result.stdout
