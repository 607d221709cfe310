"""Main entry point for the promptgate command line.

Sets up the Typer CLI application, wires dependencies (Composition Root) and
defines the `ask`, `models` and `cost` commands.
"""

import asyncio
import logging
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

from promptgate.core.services.prompt_service import PromptClient
from promptgate.domain.exceptions import ConfigurationError, ModelNotFoundError
from promptgate.domain.models.ai import ModelMetadata, ModelTier
from promptgate.domain.models.prompt import PromptInput
from promptgate.infrastructure.ai.openai.model_registry import ModelRegistry
from promptgate.infrastructure.cli.display import ConsoleDisplay
from promptgate.infrastructure.config.settings import get_config, load_configuration
from promptgate.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)

# --- Dependency Wiring ---

def create_dependencies(with_client: bool = False) -> Dict[str, Any]:
    """Creates and wires up the dependencies a command needs.

    The prompt client is only built on request, so that offline commands
    (`models`, `cost`) work without an API key.

    Raises:
        ConfigurationError: If the client configuration is invalid.
    """
    load_configuration()
    dependencies: Dict[str, Any] = {
        'ui': ConsoleDisplay(),
        'registry': ModelRegistry(),
    }
    if with_client:
        dependencies['client'] = PromptClient.from_settings(registry=dependencies['registry'])
    return dependencies

def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs an async command body from a sync Typer command."""
    return asyncio.run(coro)

# --- Typer App Definition ---
app = typer.Typer(
    name="promptgate",
    help="promptgate: rate-limited, throttled and retrying OpenAI chat completions.",
    add_completion=False,
)

@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Configure logging before any command runs."""
    load_configuration()
    level = "DEBUG" if verbose else get_config('logging.level', 'WARNING')
    setup_logging(
        log_level=level,
        log_file=get_config('logging.file'),
        rich_console=bool(get_config('logging.rich', True)),
    )

# --- CLI Commands ---

@app.command()
def ask(
    prompt: Annotated[str, typer.Argument(help="The prompt to send.")],
    model: Annotated[Optional[str], typer.Option("--model", "-m", help="Model id. Uses the configured default if not set.")] = None,
    system: Annotated[Optional[str], typer.Option("--system", "-s", help="System message override.")] = None,
    temperature: Annotated[Optional[float], typer.Option("--temperature", "-t", help="Sampling temperature (0-2).")] = None,
    max_tokens: Annotated[Optional[int], typer.Option("--max-tokens", help="Response token budget.")] = None,
    stream: Annotated[bool, typer.Option("--stream", help="Print the response as it arrives.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
):
    """Send one prompt through the throttle, rate limiter and retry pipeline."""
    try:
        deps = create_dependencies(with_client=True)
        prompt_input = PromptInput(
            input=prompt,
            model=model,
            system_message=system,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        client: PromptClient = deps['client']
        ui: ConsoleDisplay = deps['ui']

        if stream and not as_json:
            response = run_async(client.prompt_stream(prompt_input, ui.display_stream_chunk))
            ui.console.print()
            ui.display_response(response, show_content=False)
        elif stream:
            response = run_async(client.prompt_stream(prompt_input, lambda chunk: None))
            ui.display_response(response, as_json=True)
        else:
            response = run_async(client.prompt(prompt_input))
            ui.display_response(response, as_json=as_json)
    except ConfigurationError as e:
        ConsoleDisplay().display_error(f"Configuration error: {e.message}")
        raise typer.Exit(code=2)

    if not response.ok:
        raise typer.Exit(code=1)

@app.command()
def models(
    tier: Annotated[Optional[ModelTier], typer.Option("--tier", help="Only list one model family.")] = None,
    vision: Annotated[bool, typer.Option("--vision", help="Only models with vision support.")] = False,
    tools: Annotated[bool, typer.Option("--tools", help="Only models with function calling.")] = False,
    structured: Annotated[bool, typer.Option("--structured", help="Only models with structured output.")] = False,
):
    """List known models with pricing and capabilities."""
    deps = create_dependencies()
    registry: ModelRegistry = deps['registry']

    selected: List[ModelMetadata] = registry.get_models_sorted_by_price()
    if tier is not None:
        selected = [m for m in selected if m.tier == tier]
    if vision:
        selected = [m for m in selected if m.supports_vision]
    if tools:
        selected = [m for m in selected if m.supports_function_calling]
    if structured:
        selected = [m for m in selected if m.supports_structured_output]

    deps['ui'].display_models(selected)

@app.command()
def cost(
    model: Annotated[str, typer.Argument(help="Model id, e.g. gpt-4o-mini.")],
    input_tokens: Annotated[int, typer.Argument(min=0, help="Prompt tokens.")],
    output_tokens: Annotated[int, typer.Argument(min=0, help="Completion tokens.")],
):
    """Estimate the cost of a request from its token counts."""
    deps = create_dependencies()
    try:
        estimate = deps['registry'].calculate_cost(model, input_tokens, output_tokens)
    except ModelNotFoundError as e:
        deps['ui'].display_error(e.message)
        raise typer.Exit(code=1)
    deps['ui'].display_cost(model, input_tokens, output_tokens, estimate)

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
