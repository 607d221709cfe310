import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from promptgate.domain.interfaces.user_interface import UserInterface
from promptgate.domain.models.ai import ModelMetadata
from promptgate.domain.models.common import PromptCost
from promptgate.domain.models.prompt import PromptResponse

logger = logging.getLogger(__name__)

def format_usd(amount: float) -> str:
    """Formats a cost with enough precision for sub-cent amounts."""
    return f"${amount:.6f}"

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_response(self, response: PromptResponse, **kwargs: Any) -> None:
        """Displays a prompt result as a panel followed by a usage summary.

        Args:
            response: The result to display.
            **kwargs: Additional arguments including:
                - as_json: Print the plain-data view instead of panels.
                - show_content: Set False when the content was already streamed.
        """
        if kwargs.get("as_json"):
            self.console.print_json(json.dumps(response.to_dict(), default=str))
            return

        if not response.ok:
            self.display_error(f"{response.status.value}: {response.error}")
            return

        if kwargs.get("show_content", True):
            content = response.content
            if not isinstance(content, str):
                content = json.dumps(response.to_dict()["content"], indent=2, default=str)
                body: Any = Text(content)
            else:
                body = Markdown(content)

            timestamp = datetime.now().strftime("%H:%M:%S")
            header = f"[bold white]{response.model or 'AI'}[/bold white] [dim]·[/dim] [dim white]{timestamp}[/dim white]"
            self.console.print(Panel(
                body,
                title=header,
                title_align="left",
                border_style="blue",
                box=ROUNDED,
                padding=(0, 1),
            ))

        self.console.print(self._summary_table(response))

    def _summary_table(self, response: PromptResponse) -> Table:
        table = Table(box=SIMPLE, show_header=False, padding=(0, 1))
        table.add_column("Field", style="dim")
        table.add_column("Value")

        table.add_row("Status", f"[green]{response.status.value}[/green]")
        if response.finish_reason:
            table.add_row("Finish reason", response.finish_reason)
        table.add_row("Attempts", str(response.attempts))
        if response.latency_ms is not None:
            table.add_row("Latency", f"{response.latency_ms:.0f} ms")
        if response.usage:
            usage = response.usage
            table.add_row(
                "Tokens",
                f"{usage['prompt_tokens']} in / {usage['completion_tokens']} out / {usage['total_tokens']} total",
            )
        if response.cost:
            table.add_row("Cost", format_usd(response.cost["total_cost"]))
        if response.tool_calls:
            table.add_row("Tool calls", str(len(response.tool_calls)))
        return table

    def display_stream_chunk(self, chunk: str) -> None:
        self.console.print(chunk, end="", markup=False, highlight=False, soft_wrap=True)

    def display_models(self, models: List[ModelMetadata], **kwargs: Any) -> None:
        """Displays models as a table, one row per model."""
        if not models:
            self.display_info("No models match the given filters.")
            return

        table = Table(title=kwargs.get("title", "OpenAI Models"), box=ROUNDED)
        table.add_column("Model", style="bold cyan", no_wrap=True)
        table.add_column("Tier")
        table.add_column("Context", justify="right")
        table.add_column("Input $/1M", justify="right")
        table.add_column("Output $/1M", justify="right")
        table.add_column("Vision", justify="center")
        table.add_column("Tools", justify="center")
        table.add_column("Structured", justify="center")

        def flag(value: bool) -> str:
            return "[green]✓[/green]" if value else "[dim]-[/dim]"

        for metadata in models:
            table.add_row(
                metadata.model.value,
                metadata.pricing_tier.value,
                f"{metadata.context_window:,}",
                f"{metadata.pricing.input_per_1m:.2f}",
                f"{metadata.pricing.output_per_1m:.2f}",
                flag(metadata.supports_vision),
                flag(metadata.supports_function_calling),
                flag(metadata.supports_structured_output),
            )
        self.console.print(table)

    def display_cost(self, model: str, input_tokens: int, output_tokens: int, cost: PromptCost) -> None:
        table = Table(title=f"Estimated cost for {model}", box=ROUNDED, show_header=True)
        table.add_column("", style="dim")
        table.add_column("Tokens", justify="right")
        table.add_column("Cost (USD)", justify="right")
        table.add_row("Input", f"{input_tokens:,}", format_usd(cost["input_cost"]))
        table.add_row("Output", f"{output_tokens:,}", format_usd(cost["output_cost"]))
        table.add_row("[bold]Total[/bold]", f"{input_tokens + output_tokens:,}", f"[bold]{format_usd(cost['total_cost'])}[/bold]")
        self.console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
