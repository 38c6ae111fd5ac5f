"""TokenGate Management CLI Tool."""

import sys
from dataclasses import asdict
from typing import Optional

import typer
from rich.console import Console

from tokengate import __version__
from tokengate.cli.commands import token
from tokengate.cli.utils.context import CLIContext
from tokengate.cli.utils.output import OutputFormatter
from tokengate.core.config import get_settings
from tokengate.infrastructure.logging import setup_logging

app = typer.Typer(
    name="tokengate",
    help="TokenGate Management CLI - issue and manage content access tokens",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    pretty_exceptions_enable=False,
)

console = Console()


def version_callback(value: bool):
    """Display version and exit."""
    if value:
        console.print(f"TokenGate CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output",
    ),
    output_format: str = typer.Option(
        "table",
        "--output",
        "-o",
        help="Output format: table, json",
    ),
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        envvar="DATABASE_URL",
        help="Database URL (defaults to the configured one)",
    ),
):
    """
    TokenGate Management CLI

    Works directly against the configured token database.
    """
    settings = get_settings()
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})

    # Keep command output clean unless debugging
    setup_logging(
        settings.model_copy(update={"log_level": "DEBUG" if debug else "WARNING"}),
        stream=sys.stderr,
    )

    ctx.obj = CLIContext(
        debug=debug,
        settings=settings,
        formatter=OutputFormatter(output_format),
        console=console,
    )

    if debug:
        console.print("[dim]Debug mode enabled[/dim]")


app.add_typer(token.app, name="token", help="Manage access tokens")


@app.command("projects")
def projects_command(ctx: typer.Context):
    """
    List content projects found under the content root.
    """
    cli_ctx: CLIContext = ctx.obj
    projects = [asdict(p) for p in cli_ctx.get_resolver().discover()]
    cli_ctx.formatter.print_list(
        projects,
        columns=["id", "name", "html_path"],
        title=f"Projects in {cli_ctx.settings.content_root}",
    )


@app.command("serve")
def serve_command(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """
    Run the portal and admin API with uvicorn.
    """
    import uvicorn

    from tokengate.main import create_app

    cli_ctx: CLIContext = ctx.obj
    settings = cli_ctx.settings
    uvicorn.run(
        "tokengate.main:app" if reload else create_app(settings),
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    app()
