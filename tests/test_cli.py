"""Tests for the viki command line"""

import json

import httpx
import pytest
from rich.console import Console
from typer.testing import CliRunner

from viki import cli as cli_module
from viki import cli_providers
from viki.auth import CredentialResolver, CredentialStore
from viki.cli import app
from viki.config import ProviderStore
from viki.provider import Gateway, Transport

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep rich from wrapping tables and messages at 80 columns"""
    monkeypatch.setattr(cli_module, "console", Console(width=200))
    monkeypatch.setattr(cli_providers, "console", Console(width=200))


@pytest.fixture
def cli(config_path):
    def invoke(*args, **kwargs):
        return runner.invoke(app, ["--config", str(config_path), *args], **kwargs)
    return invoke


@pytest.fixture
def mock_gateway(monkeypatch):
    """Route CLI gateways to an in-process handler"""
    def install(handler):
        def from_settings(cls, settings=None):
            return cls(
                store=ProviderStore.load(settings=settings),
                credentials=CredentialResolver(CredentialStore(settings.credentials_path()), environ={}),
                transport=Transport(transport=httpx.MockTransport(handler)),
            )
        monkeypatch.setattr(Gateway, "from_settings", classmethod(from_settings))
    return install


class TestProviders:
    def test_add_and_list(self, cli, config_path):
        result = cli("providers", "add", "work", "--provider", "anthropic")
        assert result.exit_code == 0, result.output
        assert "Added provider 'work'" in result.output
        assert "claude-3-sonnet-20240229" in result.output

        saved = json.loads(config_path.read_text())
        assert saved["defaultProvider"] == "work"
        assert saved["providers"]["work"]["kind"] == "anthropic"
        assert saved["providers"]["work"]["apiKeyRef"] == "work"

        result = cli("providers", "list")
        assert result.exit_code == 0
        assert "work (default)" in result.output
        assert "Anthropic" in result.output

    def test_list_empty(self, cli):
        result = cli("providers", "list")
        assert result.exit_code == 0
        assert "No AI providers configured" in result.output

    def test_add_invalid_kind(self, cli, config_path):
        result = cli("providers", "add", "x", "--provider", "cohere")
        assert result.exit_code == 1
        assert "invalid provider kind" in result.output
        assert not config_path.exists()

    def test_add_with_api_key(self, cli, tmp_path):
        result = cli("providers", "add", "oa", "-p", "openai", "--api-key", "sk-test")
        assert result.exit_code == 0, result.output

        store = CredentialStore(tmp_path / "home" / ".config" / "viki" / "credentials.json")
        assert store.get("oa") == "sk-test"

    def test_default_and_remove(self, cli, config_path):
        cli("providers", "add", "a", "-p", "openai")
        cli("providers", "add", "b", "-p", "ollama")

        result = cli("providers", "default", "b")
        assert result.exit_code == 0
        assert json.loads(config_path.read_text())["defaultProvider"] == "b"

        result = cli("providers", "remove", "b")
        assert result.exit_code == 0
        assert "Default provider: a" in result.output

        result = cli("providers", "remove", "b")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_enable_disable(self, cli, config_path):
        cli("providers", "add", "a", "-p", "openai")

        result = cli("providers", "disable", "a")
        assert result.exit_code == 0
        saved = json.loads(config_path.read_text())
        assert saved["providers"]["a"]["enabled"] is False
        assert saved["defaultProvider"] == ""

        result = cli("providers", "enable", "a")
        assert result.exit_code == 0
        assert json.loads(config_path.read_text())["defaultProvider"] == "a"

    def test_models(self, cli):
        result = cli("providers", "models", "openai")
        assert result.exit_code == 0
        assert "gpt-4 (default)" in result.output

        result = cli("providers", "models", "nope")
        assert result.exit_code == 1

    def test_malformed_config(self, cli, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text("{broken")

        result = cli("providers", "list")
        assert result.exit_code == 1

    def test_probe(self, cli, mock_gateway):
        cli("providers", "add", "local", "-p", "ollama")
        mock_gateway(lambda request: httpx.Response(200, json={"message": {"content": "OK"}, "done": True}))

        result = cli("providers", "test", "local")
        assert result.exit_code == 0, result.output
        assert "Connection successful" in result.output

    def test_probe_failure(self, cli, mock_gateway):
        cli("providers", "add", "local", "-p", "ollama")
        mock_gateway(lambda request: httpx.Response(503, text="unavailable"))

        result = cli("providers", "test", "local")
        assert result.exit_code == 1
        assert "Connection failed" in result.output


class TestKeys:
    def test_set_list_delete(self, cli):
        result = cli("keys", "set", "work", input="secret-value\n")
        assert result.exit_code == 0, result.output

        result = cli("keys", "list")
        assert result.exit_code == 0
        assert "work" in result.output
        assert "secret-value" not in result.output

        result = cli("keys", "delete", "work")
        assert result.exit_code == 0

        result = cli("keys", "delete", "work")
        assert result.exit_code == 1

    def test_list_empty(self, cli):
        result = cli("keys", "list")
        assert result.exit_code == 0
        assert "No stored API keys" in result.output


class TestChat:
    def test_stream(self, cli, mock_gateway):
        cli("providers", "add", "local", "-p", "ollama")
        body = '{"message":{"content":"Hel"},"done":false}\n{"message":{"content":"lo"},"done":true}\n'
        mock_gateway(lambda request: httpx.Response(200, text=body))

        result = cli("chat", "hi", "there")
        assert result.exit_code == 0, result.output
        assert "Hello" in result.output

    def test_no_stream_prints_usage(self, cli, mock_gateway):
        cli("providers", "add", "local", "-p", "ollama")
        requests = []

        def handler(request):
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={
                "message": {"content": "Hello"},
                "done": True,
                "prompt_eval_count": 3,
                "eval_count": 2,
            })

        mock_gateway(handler)
        result = cli("chat", "hi", "--no-stream", "--system", "be brief", "-m", "mistral")
        assert result.exit_code == 0, result.output
        assert "Hello" in result.output
        assert "5 tokens" in result.output

        sent = requests[0]
        assert sent["model"] == "mistral"
        assert sent["stream"] is False
        assert sent["messages"][0] == {"role": "system", "content": "be brief"}
        assert sent["messages"][1] == {"role": "user", "content": "hi"}

    def test_no_provider(self, cli, mock_gateway):
        mock_gateway(lambda request: httpx.Response(200))

        result = cli("chat", "hi")
        assert result.exit_code == 1
        assert "no default provider" in result.output

    def test_http_error(self, cli, mock_gateway):
        cli("providers", "add", "local", "-p", "ollama")
        mock_gateway(lambda request: httpx.Response(500, text="rate limited"))

        result = cli("chat", "hi", "--no-stream")
        assert result.exit_code == 1
        assert "500" in result.output
