"""Console output helpers.

Provides consistent formatting for CLI output messages, and ErrorRenderer
for error panels with "Why" and "How to fix" sections.
"""

from __future__ import annotations

import traceback
from typing import List, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

# Shared console instance
_console: Console | None = None

# Set by the --debug flag
_verbose_mode: bool = False


def get_console() -> Console:
    """Get shared console instance (lazy-loaded)."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_verbose_mode(enabled: bool) -> None:
    """Enable or disable full tracebacks in error panels."""
    global _verbose_mode
    _verbose_mode = enabled


def is_verbose_mode() -> bool:
    return _verbose_mode


def tip(message: str) -> None:
    """Display a dim tip line below primary output.

    Example:
        tip("Run `studydeck review` to start")
        # Output: "  Tip: Run `studydeck review` to start"
    """
    get_console().print(f"  [dim]Tip: {message}[/dim]", highlight=False)

class ErrorRenderer:
    """Error and warning panels for deck commands.

    An error panel shows the message, the root cause when it differs, and
    the "Why it happened" / "How to fix" text from get_error_info(). With
    --debug the traceback follows the panel.

    Example
    -------
        try:
            run_with_store(config, lambda store: store.save(items))
        except StorageError as e:
            ErrorRenderer.render(e, context="While saving the deck")
            raise typer.Exit(1)
    """

    @staticmethod
    def _sections(exc: BaseException) -> List[Tuple[str, str, List[str]]]:
        """(heading, style, lines) blocks shown under the error message."""
        from studydeck.core.exceptions import (
            StorageError,
            get_error_info,
            get_root_cause,
            sanitize_message,
        )

        info = get_error_info(exc)
        sections: List[Tuple[str, str, List[str]]] = []

        root = get_root_cause(exc)
        if root is not exc and str(root) != str(exc):
            sections.append(("Root cause", "yellow", [sanitize_message(str(root))]))

        sections.append(("Why it happened", "cyan", [info["why_it_happened"]]))
        sections.append(
            ("How to fix", "green", [f"- {fix}" for fix in info["how_to_fix"]])
        )
        if isinstance(exc, StorageError):
            sections.append(
                ("Your deck", "magenta", ["Nothing from this command was saved"])
            )
        return sections

    @staticmethod
    def render(
        exc: BaseException,
        context: str = "",
        show_traceback: Optional[bool] = None,
    ) -> None:
        """Print an error panel for exc.

        Args:
            exc: Exception to render
            context: Dim first line, e.g. "While running import"
            show_traceback: Force the traceback on or off (None follows --debug)
        """
        from studydeck.core.exceptions import get_error_info, sanitize_message

        body = Text()
        if context:
            body.append(f"{context}\n\n", style="dim")
        body.append(sanitize_message(str(exc)) or type(exc).__name__, style="bold red")

        for heading, style, lines in ErrorRenderer._sections(exc):
            body.append(f"\n\n{heading}:", style=f"bold {style}")
            for line in lines:
                body.append(f"\n  {line}", style=style)

        console = get_console()
        console.print(
            Panel(
                body,
                title=f"[bold red]Error: {get_error_info(exc)['error_code']}[/bold red]",
                border_style="red",
                padding=(1, 2),
            )
        )

        if show_traceback is None:
            show_traceback = is_verbose_mode()
        if show_traceback:
            console.print("[dim]Traceback (--debug):[/dim]")
            console.print(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                style="dim",
                markup=False,
                highlight=False,
            )

    @staticmethod
    def render_warning(message: str, suggestion: str = "") -> None:
        """Print a yellow panel for a problem the command recovered from."""
        body = Text(message, style="bold yellow")
        if suggestion:
            body.append(f"\n{suggestion}", style="dim")
        get_console().print(
            Panel(body, title="[bold yellow]Not saved[/bold yellow]", border_style="yellow")
        )
