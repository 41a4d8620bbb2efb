"""CLI commands for jellyzap."""

import typer
from rich.console import Console
from rich.table import Table

from jellyzap import __version__, __logo__, __title__

app = typer.Typer(
    name="Jellyzap",
    help=f"{__logo__} {__title__} - Jellyfin notifications to a WhatsApp group",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} {__title__} v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """Jellyzap - Jellyfin notifications to a WhatsApp group."""
    pass


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard():
    """Write a default configuration file."""
    from jellyzap.config.loader import get_config_path, save_config
    from jellyzap.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]✓[/green] Created config at {config_path}")

    console.print(f"\n{__logo__} {__title__} is ready!")
    console.print("\nNext steps:")
    console.print("  1. Start the WhatsApp bridge and scan the QR code it prints")
    console.print("  2. Run [cyan]jellyzap gateway[/cyan] and [cyan]jellyzap groups[/cyan] to find your group id")
    console.print(f"  3. Set [cyan]channels.whatsapp.groupId[/cyan] in {config_path} (or WHATSAPP_GROUP_ID)")
    console.print("  4. Point the Jellyfin webhook plugin at [cyan]http://<host>:<port>/webhook[/cyan]")


# ============================================================================
# Gateway / Server
# ============================================================================


@app.command()
def gateway(
    port: int = typer.Option(None, "--port", "-p", help="HTTP port (default from config)"),
    host: str = typer.Option(None, "--host", help="Bind address (default from config)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Start the webhook server and the WhatsApp session."""
    import uvicorn

    from jellyzap.api.app import create_app
    from jellyzap.config.loader import load_config
    from jellyzap.utils.logging_config import configure_logging

    config = load_config()
    configure_logging(config.logging, verbose=verbose)
    if port is not None:
        config.gateway.port = port
    if host is not None:
        config.gateway.host = host

    console.print(f"{__logo__} Starting {__title__} gateway on {config.gateway.host}:{config.gateway.port}...")
    if not config.group_id:
        console.print("[yellow]No target group configured; webhooks will fail until WHATSAPP_GROUP_ID is set[/yellow]")

    uvicorn.run(
        create_app(config),
        host=config.gateway.host,
        port=config.gateway.port,
        log_level="debug" if verbose else "info",
    )


# ============================================================================
# Status Commands
# ============================================================================


@app.command()
def status():
    """Show configuration."""
    from jellyzap.config.loader import get_config_path, load_config

    config_path = get_config_path()
    config = load_config()
    wa = config.channels.whatsapp

    console.print(f"{__logo__} {__title__} Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[dim]not found (using env/defaults)[/dim]'}")

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="yellow")
    table.add_row("Bridge URL", wa.bridge_url)
    table.add_row("Session", wa.session)
    table.add_row("Group ID", wa.group_id or "[red]not set[/red]")
    table.add_row("Bridge token", "set" if wa.bridge_token else "[dim]not set[/dim]")
    table.add_row("Listen", f"{config.gateway.host}:{config.gateway.port}")
    table.add_row("Liveness interval", f"{config.liveness.interval_seconds:g}s")
    console.print(table)


@app.command()
def groups(
    url: str = typer.Option(None, "--url", "-u", help="Gateway base URL (default http://localhost:<port>)"),
):
    """List the WhatsApp groups known to a running gateway."""
    import httpx

    from jellyzap.config.loader import load_config

    base = url or f"http://localhost:{load_config().gateway.port}"
    try:
        r = httpx.get(f"{base.rstrip('/')}/groups", timeout=30.0)
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach gateway at {base}: {e}[/red]")
        raise typer.Exit(1)

    data = r.json()
    if r.status_code != 200:
        console.print(f"[red]{data.get('error', 'Request failed')}[/red]: {data.get('details', '')}")
        raise typer.Exit(1)

    table = Table(title="WhatsApp Groups")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="yellow")
    for group in data:
        table.add_row(group.get("name", ""), group.get("id", ""))
    console.print(table)


if __name__ == "__main__":
    app()
