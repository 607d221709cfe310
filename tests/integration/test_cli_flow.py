import json

import pytest
from typer.testing import CliRunner

from promptgate.core.services.prompt_service import PromptClient
from promptgate.domain.models.config import ClientConfig
from promptgate.main import app

WIDE = {"COLUMNS": "200"}

class StatusError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code

@pytest.fixture
def patch_client(mocker, fake_clock):
    """Makes `ask` build its client around a scripted provider."""
    def install(provider):
        def from_settings(**kwargs):
            return PromptClient(
                ClientConfig(default_model="gpt-4o-mini"),
                provider=provider,
                clock=fake_clock,
                sleep=fake_clock.sleep,
                **kwargs,
            )
        return mocker.patch("promptgate.main.PromptClient.from_settings", side_effect=from_settings)
    return install

def test_ask_command_flow(runner: CliRunner, patch_client, fake_provider):
    patch_client(fake_provider)

    result = runner.invoke(app, ["ask", "--model", "gpt-4o", "-t", "0.2", "Say hello"], env=WIDE)

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert "Mocked AI response" in result.stdout
    assert "10 in / 20 out / 30 total" in result.stdout
    params = fake_provider.calls[0]
    assert params["model"] == "gpt-4o"
    assert params["temperature"] == 0.2
    assert params["messages"][-1]["content"] == "Say hello"

def test_ask_json_output(runner: CliRunner, patch_client, fake_provider):
    patch_client(fake_provider)

    result = runner.invoke(app, ["ask", "--json", "Say hello"], env=WIDE)

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["status"] == "success"
    assert data["usage"]["total_tokens"] == 30

def test_ask_stream(runner: CliRunner, patch_client, provider_factory, chunk_factory):
    provider = provider_factory(stream_outcomes=[[chunk_factory("Hel"), chunk_factory("lo", "stop")]])
    patch_client(provider)

    result = runner.invoke(app, ["ask", "--stream", "Say hello"], env=WIDE)

    assert result.exit_code == 0
    assert "Hello" in result.stdout
    assert provider.stream_calls

def test_ask_failure_exit_code(runner: CliRunner, patch_client, provider_factory):
    patch_client(provider_factory([StatusError(400, "Invalid request: bad parameter")]))

    result = runner.invoke(app, ["ask", "Say hello"], env=WIDE)

    assert result.exit_code == 1
    assert "Invalid request: bad parameter" in result.stdout

def test_ask_configuration_error(runner: CliRunner, patch_client, fake_provider):
    patch_client(fake_provider)

    result = runner.invoke(app, ["ask", "--temperature", "9", "Say hello"], env=WIDE)

    assert result.exit_code == 2
    assert "Temperature must be between 0 and 2" in result.stdout
    assert fake_provider.calls == []

def test_ask_without_api_key(runner: CliRunner, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY")

    result = runner.invoke(app, ["ask", "Say hello"], env=WIDE)

    assert result.exit_code == 2
    assert "API key not found" in result.stdout

def test_models_command(runner: CliRunner):
    result = runner.invoke(app, ["models", "--tier", "o1"], env=WIDE)

    assert result.exit_code == 0
    assert "o1-mini" in result.stdout
    assert "gpt-4o" not in result.stdout

def test_models_command_filters(runner: CliRunner):
    result = runner.invoke(app, ["models", "--vision", "--structured"], env=WIDE)

    assert result.exit_code == 0
    assert "gpt-4o-mini" in result.stdout
    assert "gpt-3.5-turbo" not in result.stdout

def test_cost_command(runner: CliRunner):
    result = runner.invoke(app, ["cost", "gpt-4o", "1000000", "0"], env=WIDE)

    assert result.exit_code == 0
    assert "$2.500000" in result.stdout

def test_cost_unknown_model(runner: CliRunner):
    result = runner.invoke(app, ["cost", "gpt-9", "10", "10"], env=WIDE)

    assert result.exit_code == 1
    assert "Model metadata not found for: gpt-9" in result.stdout
