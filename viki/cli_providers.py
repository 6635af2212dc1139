"""CLI commands for provider and API key management"""

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from viki.auth import CredentialStore
from viki.config import GatewaySettings, ProviderKind, ProviderStore, catalog
from viki.errors import GatewayError
from viki.provider import Gateway

app = typer.Typer(help="Manage AI model providers")
keys_app = typer.Typer(help="Manage stored API keys")
console = Console()


def _settings(ctx: typer.Context) -> GatewaySettings:
    return (ctx.obj or {}).get("settings") or GatewaySettings()


def _fail(error: Exception | str):
    console.print(f"[red]{escape(str(error))}[/red]")
    raise typer.Exit(1)


def _store(ctx: typer.Context) -> ProviderStore:
    try:
        return ProviderStore.load(settings=_settings(ctx))
    except GatewayError as e:
        _fail(e)


@app.command("add")
def add_provider(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name for this provider profile"),
    kind: str = typer.Option(..., "--provider", "-p", help="Provider kind (openai, anthropic, google, ollama, azure)"),
    model: str = typer.Option("", "--model", "-m", help="Model name (provider-specific)"),
    base_url: str = typer.Option("", "--base-url", help="Custom base URL for the provider"),
    key_ref: str = typer.Option("", "--key-ref", help="Credential store entry holding the API key"),
    api_key: str = typer.Option(None, "--api-key", help="Store this API key under the key reference"),
    make_default: bool = typer.Option(False, "--default", help="Set this provider as the default"),
):
    """Add a provider profile"""
    store = _store(ctx)
    try:
        profile = store.add_provider(name, kind, key_ref, model, {"base_url": base_url})
        if make_default:
            store.set_default(name)
    except GatewayError as e:
        _fail(e)

    if api_key:
        CredentialStore(_settings(ctx).credentials_path()).set(profile.api_key_ref, api_key)

    console.print(f"[green]Added provider '{name}'[/green]")
    console.print(f"Provider: {catalog.display_name(profile.kind)}")
    console.print(f"Model: {profile.model}")
    if store.default_provider == name:
        console.print("Default provider")


@app.command("remove")
def remove_provider(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Provider name"),
):
    """Remove a provider profile"""
    store = _store(ctx)
    try:
        store.remove_provider(name)
    except GatewayError as e:
        _fail(e)
    console.print(f"[green]Removed provider '{name}'[/green]")
    if store.default_provider:
        console.print(f"Default provider: {store.default_provider}")


@app.command("list")
def list_providers(ctx: typer.Context):
    """List configured providers"""
    store = _store(ctx)
    profiles = store.list_providers()

    if not profiles:
        console.print("[yellow]No AI providers configured[/yellow]")
        console.print("Use 'viki providers add <name> --provider <kind>' to add one.")
        return

    table = Table(title="Configured AI Providers")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Provider", style="green")
    table.add_column("Model", style="magenta")
    table.add_column("Base URL", style="blue")
    table.add_column("Status")

    for profile in profiles:
        name = profile.name
        if name == store.default_provider:
            name += " (default)"
        table.add_row(
            name,
            catalog.display_name(profile.kind),
            profile.model,
            profile.base_url or catalog.default_base_url(profile.kind),
            "enabled" if profile.enabled else "[red]disabled[/red]",
        )

    console.print(table)


@app.command("default")
def set_default(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Provider name"),
):
    """Set the default provider"""
    store = _store(ctx)
    try:
        store.set_default(name)
    except GatewayError as e:
        _fail(e)
    console.print(f"[green]Set '{name}' as the default provider[/green]")


@app.command("enable")
def enable_provider(ctx: typer.Context, name: str = typer.Argument(..., help="Provider name")):
    """Enable a provider profile"""
    try:
        _store(ctx).set_enabled(name, True)
    except GatewayError as e:
        _fail(e)
    console.print(f"[green]Enabled '{name}'[/green]")


@app.command("disable")
def disable_provider(ctx: typer.Context, name: str = typer.Argument(..., help="Provider name")):
    """Disable a provider profile"""
    try:
        _store(ctx).set_enabled(name, False)
    except GatewayError as e:
        _fail(e)
    console.print(f"[yellow]Disabled '{name}'[/yellow]")


@app.command("test")
def test_provider(
    ctx: typer.Context,
    name: str = typer.Argument("", help="Provider name (default provider if omitted)"),
):
    """Send a probe request to check a provider"""
    try:
        gateway = Gateway.from_settings(_settings(ctx))
    except GatewayError as e:
        _fail(e)

    async def probe():
        async with gateway:
            return await gateway.validate(name)

    console.print(f"Testing connection to {name or gateway.store.default_provider or 'default provider'}...")
    try:
        asyncio.run(probe())
    except GatewayError as e:
        console.print(f"[red]Connection failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    console.print("[green]Connection successful![/green]")


@app.command("models")
def list_models(kind: str = typer.Argument(..., help="Provider kind")):
    """Show well-known models for a provider kind"""
    try:
        provider_kind = ProviderKind(kind)
    except ValueError:
        _fail(f"invalid provider kind '{kind}'")

    default = catalog.default_model(provider_kind)
    for model in catalog.known_models(provider_kind):
        suffix = " (default)" if model == default else ""
        console.print(f"{model}{suffix}")


@keys_app.command("set")
def set_key(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Key reference (usually the provider name)"),
):
    """Store an API key"""
    secret = typer.prompt(f"Enter API key for {ref}", hide_input=True).strip()
    if not secret:
        _fail("API key is required")
    CredentialStore(_settings(ctx).credentials_path()).set(ref, secret)
    console.print(f"[green]Stored API key '{ref}'[/green]")


@keys_app.command("delete")
def delete_key(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Key reference"),
):
    """Delete a stored API key"""
    if not CredentialStore(_settings(ctx).credentials_path()).delete(ref):
        _fail(f"no stored API key '{ref}'")
    console.print(f"[green]Deleted API key '{ref}'[/green]")


@keys_app.command("list")
def list_keys(ctx: typer.Context):
    """List stored key references (values are never shown)"""
    refs = CredentialStore(_settings(ctx).credentials_path()).list()
    if not refs:
        console.print("[yellow]No stored API keys[/yellow]")
        return
    for ref in refs:
        console.print(ref)
