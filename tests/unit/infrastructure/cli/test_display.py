import pytest
from rich.console import Console

from promptgate.domain.models.prompt import PromptInput, PromptResponse, PromptStatus
from promptgate.infrastructure.ai.openai.model_registry import ModelRegistry
from promptgate.infrastructure.cli.display import ConsoleDisplay, format_usd

@pytest.fixture
def console():
    """Recording console so printed output can be inspected."""
    return Console(record=True, width=120, color_system=None)

@pytest.fixture
def console_display(console: Console):
    return ConsoleDisplay(console=console)

@pytest.fixture
def success_response():
    return PromptResponse(
        status=PromptStatus.SUCCESS,
        input=PromptInput(input="hi"),
        content="Hello **World**",
        usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
        cost={"input_cost": 0.0000015, "output_cost": 0.000012, "total_cost": 0.0000136},
        model="gpt-4o-mini",
        finish_reason="stop",
        latency_ms=123.4,
        attempts=2,
    )

def test_format_usd():
    assert format_usd(0.0000136) == "$0.000014"
    assert format_usd(1) == "$1.000000"

def test_display_response(console_display: ConsoleDisplay, console: Console, success_response):
    console_display.display_response(success_response)
    output = console.export_text()
    assert "Hello World" in output
    assert "gpt-4o-mini" in output
    assert "10 in / 20 out / 30 total" in output
    assert "$0.000014" in output
    assert "123 ms" in output

def test_display_response_without_content(console_display: ConsoleDisplay, console: Console, success_response):
    console_display.display_response(success_response, show_content=False)
    output = console.export_text()
    assert "Hello" not in output
    assert "success" in output

def test_display_response_as_json(console_display: ConsoleDisplay, console: Console, success_response):
    console_display.display_response(success_response, as_json=True)
    output = console.export_text()
    assert '"status": "success"' in output
    assert '"attempts": 2' in output

def test_display_failed_response(console_display: ConsoleDisplay, console: Console):
    response = PromptResponse(
        status=PromptStatus.RATE_LIMIT_ERROR,
        input=PromptInput(input="hi"),
        error="Rate limit exceeded",
        attempts=3,
    )
    console_display.display_response(response)
    output = console.export_text()
    assert "Error" in output
    assert "rate_limit_error: Rate limit exceeded" in output

def test_display_stream_chunk_has_no_newline(console_display: ConsoleDisplay, console: Console):
    console_display.display_stream_chunk("Hel")
    console_display.display_stream_chunk("lo [b]")
    assert console.export_text() == "Hello [b]"

def test_display_models(console_display: ConsoleDisplay, console: Console):
    registry = ModelRegistry()
    console_display.display_models([registry.get_model_metadata("gpt-4o-mini")])
    output = console.export_text()
    assert "gpt-4o-mini" in output
    assert "128,000" in output
    assert "0.15" in output

def test_display_models_empty(console_display: ConsoleDisplay, console: Console):
    console_display.display_models([])
    assert "No models match" in console.export_text()

def test_display_cost(console_display: ConsoleDisplay, console: Console):
    cost = ModelRegistry().calculate_cost("gpt-4o", 1000, 500)
    console_display.display_cost("gpt-4o", 1000, 500, cost)
    output = console.export_text()
    assert "Estimated cost for gpt-4o" in output
    assert "1,500" in output

def test_display_error_info_warning(console_display: ConsoleDisplay, console: Console):
    console_display.display_error("Something went wrong")
    console_display.display_info("Process completed")
    console_display.display_warning("Careful")
    output = console.export_text()
    for text in ("Something went wrong", "Process completed", "Careful", "Error", "Info", "Warning"):
        assert text in output
