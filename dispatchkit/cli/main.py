"""Entry point for the dispatchkit command line."""

import sys
from pathlib import Path

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from dispatchkit._version import __version__
from dispatchkit.api.asgi import create_asgi_app
from dispatchkit.config.settings import ConfigurationError, Settings
from dispatchkit.core.errors import StartupError
from dispatchkit.core.log_categories import LIFECYCLE
from dispatchkit.core.logging import get_logger, setup_logging
from dispatchkit.services.dispatcher import Dispatcher

from .loader import TargetError, load_dispatcher


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
    help="Inspect and serve request dispatchers.",
)

console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"dispatchkit {__version__}")
        raise typer.Exit()


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """dispatchkit - front-controller request dispatch engine."""
    try:
        settings = Settings.from_config(config_path=config)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=settings.logging.use_json(sys.stderr.isatty()),
        log_level_name=settings.logging.level,
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _load(target: str, app_dir: Path | None) -> Dispatcher:
    try:
        return load_dispatcher(target, app_dir)
    except TargetError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from e
    except StartupError as e:
        err_console.print(f"[red]Startup failed ({e.error_type}):[/red] {e.message}")
        raise typer.Exit(1) from e


TARGET_ARGUMENT = typer.Argument(
    ..., help="Dispatcher to load, as 'module:attribute'"
)
APP_DIR_OPTION = typer.Option(
    None, "--app-dir", help="Directory added to sys.path before importing"
)


@app.command()
def routes(target: str = TARGET_ARGUMENT, app_dir: Path | None = APP_DIR_OPTION) -> None:
    """List registered routes, most specific first within each method."""
    dispatcher = _load(target, app_dir)

    table = Table(title=f"Routes ({len(dispatcher.registry)})")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("Pattern", style="green", no_wrap=True)
    table.add_column("Handler")
    table.add_column("Parameters", style="dim")

    for entry in dispatcher.routes():
        params = ", ".join(
            f"{p.name}:{p.source.value}{'' if p.required else '?'}" for p in entry.params
        )
        table.add_row(entry.method.value, str(entry.pattern), entry.name or "", params)

    console.print(table)


@app.command()
def check(target: str = TARGET_ARGUMENT, app_dir: Path | None = APP_DIR_OPTION) -> None:
    """Build the dispatcher and report startup errors."""
    dispatcher = _load(target, app_dir)
    console.print(
        f"[green]OK[/green] {len(dispatcher.registry)} routes, "
        f"{len(dispatcher.container.keys())} components, "
        f"codecs: {', '.join(dispatcher.codecs.media_types)}"
    )


@app.command()
def serve(
    ctx: typer.Context,
    target: str = TARGET_ARGUMENT,
    app_dir: Path | None = APP_DIR_OPTION,
    host: str | None = typer.Option(None, "--host", help="Host to bind to"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind to"),
) -> None:
    """Serve the dispatcher over HTTP with uvicorn."""
    settings: Settings = ctx.obj["settings"]
    dispatcher = _load(target, app_dir)

    server_host = host if host is not None else settings.server.host
    server_port = port if port is not None else settings.server.port

    logger.info(
        "server_starting", host=server_host, port=server_port, category=LIFECYCLE
    )
    uvicorn.run(
        create_asgi_app(dispatcher),
        host=server_host,
        port=server_port,
        log_level=settings.logging.level.lower(),
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
