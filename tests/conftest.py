"""Shared test fixtures for schemachat.

Provides provider API keys for the HTTP clients and keeps real keys from
the developer's environment out of the tests.
"""

import pytest


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Remove schemachat environment configuration for every test."""
    for var in (
        "SCHEMACHAT_OPENAI_API_KEY",
        "SCHEMACHAT_OPENAI_BASE_URL",
        "SCHEMACHAT_ANTHROPIC_API_KEY",
        "SCHEMACHAT_ANTHROPIC_BASE_URL",
        "SCHEMACHAT_PROVIDER",
        "SCHEMACHAT_MODEL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def api_keys(monkeypatch):
    """Set dummy API keys for both built-in providers."""
    monkeypatch.setenv("SCHEMACHAT_OPENAI_API_KEY", "env-openai-key")
    monkeypatch.setenv("SCHEMACHAT_ANTHROPIC_API_KEY", "env-anthropic-key")
