"""Shared plumbing for CLI commands.

Error handling, configuration lookup and the async bridge every command
uses to reach the deck store.
"""

from __future__ import annotations

import asyncio
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import typer

from studydeck.cli.console import ErrorRenderer, is_verbose_mode
from studydeck.core.config import Config, load_config
from studydeck.core.logging import get_logger
from studydeck.storage.deck_store import DeckStore
from studydeck.storage.factory import get_deck_store

logger = get_logger(__name__)

T = TypeVar("T")


def safe_cli_command(
    operation_name: str,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to wrap CLI commands with user-friendly error handling.

    Any exception other than a deliberate typer exit is rendered as an
    error panel, logged, and turned into exit code 1.

    Args:
        operation_name: Human-readable operation name for error context

    Returns:
        Decorator function that wraps the command with error handling
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except (typer.Exit, typer.Abort):
                raise
            except Exception as e:
                ErrorRenderer.render(e, context=f"While running {operation_name}")
                logger.error(
                    f"[{operation_name}] {type(e).__name__}: {e}",
                    debug=is_verbose_mode(),
                )
                raise typer.Exit(code=1)

        return wrapper

    return decorator


def get_config(ctx: typer.Context) -> Config:
    """Configuration loaded by the main callback."""
    obj = ctx.find_root().obj or {}
    config = obj.get("config")
    if config is None:
        config = load_config()
    return config


def run_with_store(
    config: Config, operation: Callable[[DeckStore], Awaitable[T]]
) -> T:
    """Run an async operation against the deck store and close it afterwards.

    Example:
        items = run_with_store(config, lambda store: store.load())
    """

    async def _run() -> T:
        store = get_deck_store(config)
        try:
            return await operation(store)
        finally:
            await store.close()

    return asyncio.run(_run())
