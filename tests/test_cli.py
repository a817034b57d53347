"""CLI tests for schemachat -- the complete command via Click's CliRunner.

The provider client is replaced with a ScriptedClient, so no request leaves
the process.
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from schemachat.cli import cli
from schemachat.llm.errors import LLMConfigError, TokenOverflowError
from tests.helpers import ScriptedClient, call, text


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def scripted(monkeypatch):
    """Install a factory that hands out one ScriptedClient per test.

    Returns a function taking the scripted replies; the created client and
    the factory arguments are exposed on the returned object.
    """

    class Installed:
        client: ScriptedClient | None = None
        provider: str | None = None
        kwargs: dict = {}

    def install(*replies, supports_function_calling=True):
        Installed.client = ScriptedClient(*replies, supports_function_calling=supports_function_calling)

        def fake_create_client(provider, **kwargs):
            Installed.provider = provider
            Installed.kwargs = kwargs
            return Installed.client

        monkeypatch.setattr("schemachat.cli.commands.complete.create_client", fake_create_client)
        return Installed

    return install


# ---------------------------------------------------------------------------
# Complete command tests
# ---------------------------------------------------------------------------

class TestCompleteCommand:

    def test_schemaless_text(self, runner, scripted):
        installed = scripted(text("Paris is the capital."))
        result = runner.invoke(cli, ["complete", "Capital of France?"])
        assert result.exit_code == 0, result.output
        assert "Paris is the capital." in result.output
        assert installed.client.closed

    def test_json_text(self, runner, scripted):
        scripted(text("Paris"))
        result = runner.invoke(cli, ["complete", "--json", "Capital of France?"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == "Paris"

    def test_schema_json_output(self, runner, scripted):
        scripted(call({"name": "Al", "age": 30}))
        result = runner.invoke(cli, ["complete", "--schema", "tests.helpers:Person", "--json", "Who?"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"name": "Al", "age": 30}

    def test_schema_pretty_output(self, runner, scripted):
        scripted(call({"name": "Al", "age": 30}))
        result = runner.invoke(cli, ["complete", "--schema", "tests.helpers:Person", "Who?"])
        assert result.exit_code == 0, result.output
        assert "Person" in result.output
        assert '"Al"' in result.output

    def test_options_forwarded(self, runner, scripted):
        installed = scripted(text("ok"))
        result = runner.invoke(
            cli,
            [
                "complete",
                "--system", "Be brief.",
                "--temperature", "0.3",
                "--max-tokens", "20",
                "--no-auto-heal",
                "--auto-slice",
                "hi",
            ],
        )
        assert result.exit_code == 0, result.output
        sent = installed.client.options(0)
        assert sent.system_message == "Be brief."
        assert sent.temperature == 0.3
        assert sent.max_tokens == 20
        assert sent.auto_heal is False
        assert sent.auto_slice is True

    def test_provider_and_model(self, runner, scripted):
        installed = scripted(text("ok"), supports_function_calling=False)
        result = runner.invoke(cli, ["complete", "--provider", "anthropic", "--model", "claude-x", "hi"])
        assert result.exit_code == 0, result.output
        assert installed.provider == "anthropic"
        assert installed.kwargs == {"model": "claude-x"}

    def test_provider_from_env(self, runner, scripted, monkeypatch):
        installed = scripted(text("ok"))
        monkeypatch.setenv("SCHEMACHAT_PROVIDER", "anthropic")
        monkeypatch.setenv("SCHEMACHAT_MODEL", "claude-env")
        result = runner.invoke(cli, ["complete", "hi"])
        assert result.exit_code == 0, result.output
        assert installed.provider == "anthropic"
        assert installed.kwargs == {"model": "claude-env"}

    def test_prompt_from_stdin(self, runner, scripted):
        installed = scripted(text("ok"))
        result = runner.invoke(cli, ["complete", "-"], input="from stdin")
        assert result.exit_code == 0, result.output
        assert installed.client.user_message(0) == "from stdin"

    def test_unknown_provider_rejected(self, runner, scripted):
        scripted()
        result = runner.invoke(cli, ["complete", "--provider", "nope", "hi"])
        assert result.exit_code != 0

    def test_verbose_flag(self, runner, scripted):
        scripted(text("ok"))
        result = runner.invoke(cli, ["-v", "complete", "hi"])
        assert result.exit_code == 0, result.output


class TestSchemaOption:

    @pytest.mark.parametrize("value", ["no_colon", ":Person", "tests.helpers:"])
    def test_malformed(self, runner, scripted, value):
        scripted()
        result = runner.invoke(cli, ["complete", "--schema", value, "hi"])
        assert result.exit_code == 2
        assert "module:Attribute" in result.output

    def test_missing_module(self, runner, scripted):
        scripted()
        result = runner.invoke(cli, ["complete", "--schema", "no_such_module_xyz:Thing", "hi"])
        assert result.exit_code == 2

    def test_missing_attribute(self, runner, scripted):
        scripted()
        result = runner.invoke(cli, ["complete", "--schema", "tests.helpers:Nope", "hi"])
        assert result.exit_code == 2
        assert "Nope" in result.output

    def test_non_object_schema_reported(self, runner, scripted):
        installed = scripted()
        result = runner.invoke(cli, ["complete", "--schema", "builtins:int", "hi"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert installed.client.calls == []


class TestErrors:

    def test_autoheal_failure(self, runner, scripted):
        scripted(text("no call"), text("still no call"))
        result = runner.invoke(cli, ["complete", "--schema", "tests.helpers:Person", "hi"])
        assert result.exit_code == 1
        assert "autoheal failed" in result.output

    def test_overflow(self, runner, scripted):
        installed = scripted(TokenOverflowError(5))
        result = runner.invoke(cli, ["complete", "hi"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert installed.client.closed

    def test_missing_api_key(self, runner, monkeypatch):
        def fail(provider, **kwargs):
            raise LLMConfigError("No API key provided.")

        monkeypatch.setattr("schemachat.cli.commands.complete.create_client", fail)
        result = runner.invoke(cli, ["complete", "hi"])
        assert result.exit_code == 1
        assert "No API key provided." in result.output
