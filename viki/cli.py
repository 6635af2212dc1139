"""CLI entry point for viki"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from viki import cli_providers
from viki.config import GatewaySettings, catalog
from viki.errors import GatewayError
from viki.provider import Gateway, Message, RequestOptions, StreamEvent

app = typer.Typer(
    name="viki",
    help="Multi-provider AI chat gateway",
    add_completion=False,
)
app.add_typer(cli_providers.app, name="providers")
app.add_typer(cli_providers.keys_app, name="keys")
console = Console()


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Path = typer.Option(None, "--config", "-c", help="Provider config file (default: .sdd/providers.json)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging and settings shared by every command"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = GatewaySettings()
    if config is not None:
        settings.config = config
    ctx.obj = {"settings": settings}


@app.command()
def chat(
    ctx: typer.Context,
    message: list[str] = typer.Argument(..., help="Message to send"),
    provider: str = typer.Option("", "--provider", "-p", help="Provider name (uses default if not specified)"),
    model: str = typer.Option(None, "--model", "-m", help="Model name (overrides the profile's model)"),
    system: str = typer.Option(None, "--system", "-s", help="System prompt"),
    temperature: float = typer.Option(0.7, "--temperature", "-t", help="Temperature for response randomness"),
    max_tokens: int = typer.Option(1000, "--max-tokens", "-x", help="Maximum tokens in response"),
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Print tokens as they arrive"),
):
    """Send a single message (non-interactive)"""
    settings: GatewaySettings = ctx.obj["settings"]

    messages = []
    if system:
        messages.append(Message(role="system", content=system))
    messages.append(Message(role="user", content=" ".join(message)))

    options = RequestOptions(
        temperature=temperature if temperature > 0 else None,
        max_tokens=max_tokens if max_tokens > 0 else None,
    )

    def print_event(event: StreamEvent):
        print(event.text, end="", flush=True)

    async def run_chat():
        gateway = Gateway.from_settings(settings)
        async with gateway:
            profile = gateway.store.resolve(provider)
            console.print(f"[bold]{catalog.display_name(profile.kind)}[/bold] ({model or profile.model})")
            if stream:
                await gateway.chat_stream(provider, messages, options, print_event, model=model)
                print()
                return

            result = await gateway.chat(provider, messages, options, model=model)
            print(result.text)
            console.print(
                f"[blue]\nUsage: {result.total_tokens} tokens "
                f"({result.prompt_tokens} prompt, {result.completion_tokens} completion)[/blue]"
            )

    try:
        asyncio.run(run_chat())
    except GatewayError as e:
        console.print(f"[red]chat failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def main():
    app()


if __name__ == "__main__":
    main()
