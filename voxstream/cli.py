"""voxstream CLI — Typer + Rich terminal interface.

Commands: ask, roles, config. With no command, starts the interactive REPL.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from voxstream import __version__
from voxstream.keys import USER_CONFIG, get_api_key, load_keys_env
from voxstream.registry import DEFAULT_CONFIG, load_client_config, load_roles, resolve_role
from voxstream.schemas.session import ClientConfig, RolePreset
from voxstream.session import ChatSession
from voxstream.transport.httpx_transport import HttpxTransport

console = Console()

app = typer.Typer(
    name="voxstream",
    help="Ask questions and watch streamed answers render as they arrive.",
    no_args_is_help=False,
    rich_markup_mode="rich",
)


# ── Callbacks ────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"voxstream {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # httpcore traces every socket event at DEBUG
    logging.getLogger("httpcore").setLevel(logging.INFO)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log stream and request details.",
    ),
    config: str = typer.Option(
        "", "--config", "-c",
        help="Path to a config TOML (default: ~/.voxstream/config.toml or built-in).",
    ),
) -> None:
    """voxstream — streaming chat client."""
    _setup_logging(verbose)
    load_keys_env()
    ctx.obj = _config_path(Path(config) if config else None)

    if ctx.invoked_subcommand is None:
        from voxstream.repl import VoxREPL

        try:
            repl = VoxREPL(ctx.obj)
        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]Error loading config:[/red] {e}")
            raise typer.Exit(1) from None
        repl.run()


# ── Helpers ──────────────────────────────────────────────────────


def _config_path(path: Path | None) -> Path:
    if path is not None:
        return path
    if USER_CONFIG.is_file():
        return USER_CONFIG
    return DEFAULT_CONFIG


def _load_config(path: Path) -> ClientConfig:
    """Load client config, exit on error."""
    try:
        return load_client_config(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _load_roles(path: Path) -> dict[str, RolePreset]:
    """Load role presets, exit on error."""
    try:
        return load_roles(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading roles:[/red] {e}")
        raise typer.Exit(1) from None


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def ask(
    ctx: typer.Context,
    question: list[str] = typer.Argument(..., help="Question to ask."),
    role: str = typer.Option(
        "", "--role", "-r",
        help="Role preset key or a literal role instruction.",
    ),
    api_key: str = typer.Option(
        "", "--api-key",
        help="Key forwarded to the service (default: configured env var).",
    ),
    endpoint: str = typer.Option(
        "", "--endpoint", "-e",
        help="Override the chat endpoint URL.",
    ),
    live: bool = typer.Option(
        True, "--live/--no-live",
        help="Redraw the answer while it streams.",
    ),
) -> None:
    """Ask a single question and stream the answer."""
    from voxstream.repl import answer_question

    path = ctx.obj or _config_path(None)
    config = _load_config(path)
    roles = _load_roles(path)

    role_key = role or config.default_role or next(iter(roles))
    transport = HttpxTransport(endpoint or config.endpoint, timeout=config.timeout)
    session = ChatSession(
        transport,
        resolve_role(roles, role_key),
        api_key=api_key or get_api_key(config),
    )

    if not answer_question(console, session, " ".join(question), live=live):
        raise typer.Exit(1)


@app.command()
def roles(ctx: typer.Context) -> None:
    """List the role presets."""
    path = ctx.obj or _config_path(None)
    config = _load_config(path)
    presets = _load_roles(path)

    table = Table(title="Role Presets", show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Label")
    table.add_column("Default", justify="center")
    for key, preset in presets.items():
        table.add_row(key, preset.label, "✓" if key == config.default_role else "")
    console.print(table)


@app.command(name="config")
def show_config(ctx: typer.Context) -> None:
    """Show the effective client configuration."""
    path = ctx.obj or _config_path(None)
    config = _load_config(path)

    table = Table(title="Client Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("File", str(path))
    table.add_row("Endpoint", config.endpoint)
    table.add_row("Timeout", f"{config.timeout:g}s")
    table.add_row("Default role", config.default_role or "-")
    table.add_row("Remember context", "on" if config.remember_context else "off")
    key_state = "set" if get_api_key(config) else "not set"
    table.add_row("API key", f"{config.api_key_env} ({key_state})")
    console.print(table)
