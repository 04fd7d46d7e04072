"""Deck management commands.

add, import, edit, delete, search, due, stats and migrate. The interactive
review loop lives in studydeck.cli.review."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import typer
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from studydeck.cli.console import get_console, tip
from studydeck.cli.core import get_config, run_with_store, safe_cli_command
from studydeck.core.exceptions import ItemNotFoundError
from studydeck.storage.deck_store import DeckStore
from studydeck.storage.migration import MigrationOutcome, MigrationResult
from studydeck.study.deck import (
    add_item,
    filter_by_tag,
    find_item,
    has_primary,
    remove_item,
    search_items,
    update_meaning,
)
from studydeck.study.due_check import due_items, get_due_notification
from studydeck.study.importer import ImportResult, parse_bulk_import_detailed
from studydeck.study.models import PromptContent, StudyItem
from studydeck.study.progress import ACHIEVEMENTS, StudyProgress, active_streak, day_of
from studydeck.study.scheduler import create_item, describe_interval, now_ms
from studydeck.study.stats import deck_stats

# Rows shown before a table is truncated
MAX_TABLE_ROWS = 50


def _items_table(items: Sequence[StudyItem], title: str, show_id: bool = False) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("#", style="cyan", width=4)
    if show_id:
        table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Primary", style="bold yellow")
    table.add_column("Reading", style="yellow")
    table.add_column("Meaning", style="white")
    table.add_column("Interval", style="green", justify="right")
    table.add_column("EF", style="magenta", justify="right")

    for idx, item in enumerate(items[:MAX_TABLE_ROWS], 1):
        row = [str(idx)]
        if show_id:
            row.append(item.id)
        row.extend(
            [
                item.content.primary,
                item.content.reading,
                item.content.meaning[:60],
                describe_interval(item.interval) if item.interval else "new",
                f"{item.ease_factor:.2f}",
            ]
        )
        table.add_row(*row)
    return table


def _print_truncation(total: int) -> None:
    if total > MAX_TABLE_ROWS:
        get_console().print(f"\n... and {total - MAX_TABLE_ROWS} more")


# ============================================================================
# add / import
# ============================================================================


@safe_cli_command("add")
def add_command(
    ctx: typer.Context,
    primary: str = typer.Argument(..., help="Word or phrase (e.g. 食べる)"),
    reading: str = typer.Option("", "--reading", "-r", help="Kana reading"),
    romaji: str = typer.Option("", "--romaji", help="Romanized reading"),
    meaning: str = typer.Option("", "--meaning", "-m", help="Meaning"),
    tags: Optional[List[str]] = typer.Option(
        None, "--tag", "-t", help="Tag (repeatable)"
    ),
) -> None:
    """Add a single item to the deck. It is due immediately."""
    config = get_config(ctx)
    console = get_console()
    primary = primary.strip()
    if not primary:
        console.print("[red]Primary text must not be empty[/red]")
        raise typer.Exit(code=1)

    content = PromptContent(
        primary=primary, reading=reading, romanized=romaji, meaning=meaning
    )

    async def _add(store: DeckStore) -> Optional[StudyItem]:
        items = await store.load(strict=True)
        if has_primary(items, primary):
            return None
        item = create_item(content, tags, config=config.scheduler)
        await store.save(add_item(items, item))
        return item

    item = run_with_store(config, _add)
    if item is None:
        console.print(f"[yellow]'{primary}' is already in the deck[/yellow]")
        return
    console.print(f"[green]✓ Added[/green] {item.content.primary} [dim]({item.id})[/dim]")


def _report_import(result: ImportResult, dry_run: bool) -> None:
    console = get_console()
    verb = "Would import" if dry_run else "Imported"
    console.print(f"[green]{verb} {result.imported} item(s)[/green]")
    if result.skipped:
        lines = ", ".join(str(n) for n in result.skipped_lines[:10])
        more = "..." if len(result.skipped_lines) > 10 else ""
        console.print(
            f"[yellow]Skipped {result.skipped} malformed row(s)[/yellow] "
            f"[dim](lines {lines}{more})[/dim]"
        )


@safe_cli_command("import")
def import_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="CSV file to import"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Parse and report without saving"
    ),
) -> None:
    """Bulk import items from a CSV file.

    Columns: primary, reading, romaji, meaning, tags (tags separated by
    ';', '|' or spaces). A first line containing "kanji" is treated as a
    header.
    """
    config = get_config(ctx)
    text = file.read_text(encoding="utf-8-sig")
    result = parse_bulk_import_detailed(
        text, config.importer, scheduler_config=config.scheduler
    )

    if result.imported and not dry_run:

        async def _save(store: DeckStore) -> None:
            items = await store.load(strict=True)
            await store.save([*items, *result.items])

        run_with_store(config, _save)

    _report_import(result, dry_run)


# ============================================================================
# edit / delete / search
# ============================================================================


@safe_cli_command("edit")
def edit_command(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Item ID (see `studydeck search`)"),
    meaning: str = typer.Option(..., "--meaning", "-m", help="New meaning"),
) -> None:
    """Change the meaning of an item. Scheduling is unchanged."""
    config = get_config(ctx)

    async def _edit(store: DeckStore) -> StudyItem:
        items = await store.load(strict=True)
        updated = update_meaning(items, item_id, meaning)
        await store.save(updated)
        return find_item(updated, item_id)

    item = run_with_store(config, _edit)
    get_console().print(
        f"[green]✓ Updated[/green] {item.content.primary}: {item.content.meaning}"
    )


@safe_cli_command("delete")
def delete_command(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Item ID (see `studydeck search`)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete an item from the deck."""
    config = get_config(ctx)
    console = get_console()

    async def _delete(store: DeckStore) -> Optional[StudyItem]:
        items = await store.load(strict=True)
        item = find_item(items, item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        if not yes and not Confirm.ask(f"Delete '{item.content.primary}'?", default=False):
            return None
        await store.save(remove_item(items, item_id))
        return item

    removed = run_with_store(config, _delete)
    if removed is None:
        console.print("[dim]Cancelled[/dim]")
        return
    console.print(f"[green]✓ Deleted[/green] {removed.content.primary}")


@safe_cli_command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to find in primary, reading or meaning"),
) -> None:
    """Search the deck."""
    config = get_config(ctx)
    console = get_console()

    items = run_with_store(config, lambda store: store.load())
    matches = search_items(items, query)
    if not matches:
        console.print(f"[yellow]No items match '{query}'[/yellow]")
        return

    console.print(_items_table(matches, f"Matches for '{query}'", show_id=True))
    _print_truncation(len(matches))


# ============================================================================
# due / stats
# ============================================================================


@safe_cli_command("due")
def due_command(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Rows to show"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only items with this tag"),
) -> None:
    """List items due for review, most overdue first."""
    config = get_config(ctx)
    console = get_console()

    now = now_ms()
    items = run_with_store(config, lambda store: store.load())
    if tag:
        items = filter_by_tag(items, tag)
    due = due_items(items, now)
    if not due:
        console.print("[green]No items due. All caught up![/green]")
        return

    console.print(_items_table(due[:limit], f"Due for Review: {len(due)}"))
    if len(due) > limit:
        console.print(f"\n... and {len(due) - limit} more")
    tip(get_due_notification(items, now) or "")


@safe_cli_command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show deck statistics and study streak."""
    config = get_config(ctx)
    console = get_console()

    async def _load(store: DeckStore) -> Tuple[List[StudyItem], StudyProgress]:
        return await store.load(), await store.load_progress()

    now = now_ms()
    items, progress = run_with_store(config, _load)
    stats = deck_stats(items, now)
    due_count = len(due_items(items, now))
    streak = active_streak(progress, day_of(now))

    overview = (
        f"[bold]Total:[/bold] {stats.total}\n"
        f"[bold]New:[/bold] [cyan]{stats.new}[/cyan]\n"
        f"[bold]Learning:[/bold] [yellow]{stats.learning}[/yellow]\n"
        f"[bold]Review:[/bold] [green]{stats.review}[/green]\n"
        f"[bold]Due now:[/bold] [red]{due_count}[/red]\n"
        f"\n"
        f"[bold]Reviewed:[/bold] {progress.cards_reviewed}\n"
        f"[bold]Streak:[/bold] [magenta]{streak} day(s)[/magenta]"
    )
    console.print(Panel(overview, title="[bold cyan]Deck Statistics[/bold cyan]", expand=False))
    if progress.unlocked_achievements:
        titles = {a.id: a.title for a in ACHIEVEMENTS}
        unlocked = ", ".join(titles.get(a, a) for a in progress.unlocked_achievements)
        console.print(f"[bold]Achievements:[/bold] {unlocked}")


# ============================================================================
# migrate
# ============================================================================

_OUTCOME_MESSAGES = {
    MigrationOutcome.ALREADY_MIGRATED: "[dim]Legacy deck was already migrated[/dim]",
    MigrationOutcome.NO_LEGACY_DATA: "[dim]No legacy deck found[/dim]",
    MigrationOutcome.PARSE_FAILED: (
        "[red]Legacy deck could not be parsed; it was left untouched[/red]"
    ),
    MigrationOutcome.WRITE_FAILED: (
        "[red]Could not write migrated items; legacy deck was left untouched[/red]"
    ),
}


def _report_migration(result: MigrationResult) -> None:
    console = get_console()
    if result.outcome is MigrationOutcome.MIGRATED:
        console.print(f"[green]✓ Migrated {result.items_migrated} item(s)[/green]")
        return
    if result.outcome is MigrationOutcome.PARTIAL:
        console.print(f"[green]✓ Migrated {result.items_migrated} item(s)[/green]")
        console.print(
            f"[yellow]{result.records_dropped} unreadable record(s) kept in the "
            f"legacy deck[/yellow]"
        )
        return
    console.print(_OUTCOME_MESSAGES[result.outcome])
    for error in result.errors:
        console.print(f"  [dim]{error}[/dim]", highlight=False)


@safe_cli_command("migrate")
def migrate_command(ctx: typer.Context) -> None:
    """Move a legacy single-file deck into the deck database."""
    config = get_config(ctx)
    result = run_with_store(config, lambda store: store.migrate())
    _report_migration(result)
    if not result.success:
        raise typer.Exit(code=1)
