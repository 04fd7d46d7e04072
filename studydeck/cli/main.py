"""StudyDeck CLI - Main application entry point.

Registers all commands and sets up configuration and logging before any
command runs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from studydeck.cli import commands
from studydeck.cli.console import ErrorRenderer, set_verbose_mode
from studydeck.cli.review import review_command
from studydeck.core.config import Config, load_config
from studydeck.core.logging import configure_logging

# Create main Typer application
app = typer.Typer(
    name="studydeck",
    help="Spaced repetition flashcards for vocabulary study",
    add_completion=False,
    pretty_exceptions_enable=False,
)


def _setup_logging(config: Config, debug: bool) -> None:
    """Apply logging settings from config; --debug forces DEBUG level."""
    level = "DEBUG" if debug else config.logging.level
    configure_logging(
        level=level,
        log_file=config.log_path,
        console=config.logging.console,
    )


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to studydeck.yaml"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Verbose logging and full tracebacks"
    ),
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit"
    ),
) -> None:
    """StudyDeck - spaced repetition flashcards."""
    if version:
        from studydeck import __version__

        typer.echo(f"StudyDeck {__version__}")
        raise typer.Exit()

    set_verbose_mode(debug)
    try:
        config = load_config(config_path)
    except Exception as e:
        ErrorRenderer.render(e, context="While loading configuration")
        raise typer.Exit(code=1)

    _setup_logging(config, debug)
    ctx.obj = {"config": config, "debug": debug}

    # If no command provided, show help
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


# Register commands
app.command("add", rich_help_panel="Deck")(commands.add_command)
app.command("import", rich_help_panel="Deck")(commands.import_command)
app.command("edit", rich_help_panel="Deck")(commands.edit_command)
app.command("delete", rich_help_panel="Deck")(commands.delete_command)
app.command("search", rich_help_panel="Deck")(commands.search_command)
app.command("review", rich_help_panel="Study")(review_command)
app.command("due", rich_help_panel="Study")(commands.due_command)
app.command("stats", rich_help_panel="Study")(commands.stats_command)
app.command("migrate", rich_help_panel="System")(commands.migrate_command)


def cli_main() -> None:
    """Entry point for console_scripts."""
    app()


if __name__ == "__main__":
    cli_main()
