"""Review command - interactive spaced repetition session.

Shows each due item, reveals the answer on Enter, and takes a rating on a
1-4 scale mapped to SM-2 quality (see scheduler.rating_qualities):

- 1 = Again (forgot)
- 2 = Hard (barely recalled)
- 3 = Good (recalled with effort)
- 4 = Easy (instant recall)

The deck is saved after every rating, together with the lifetime review
count and daily streak, so quitting mid-session keeps all ratings given
so far. ``u`` undoes the previous rating."""

from __future__ import annotations

from datetime import date
from typing import Callable, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from studydeck.cli.console import ErrorRenderer, get_console
from studydeck.cli.core import get_config, run_with_store, safe_cli_command
from studydeck.core.config import Config
from studydeck.core.exceptions import StorageError
from studydeck.core.logging import get_logger
from studydeck.storage.deck_store import DeckStore
from studydeck.study.models import ReviewRating, StudyItem
from studydeck.study.progress import ACHIEVEMENTS, StudyProgress, day_of, record_reviews
from studydeck.study.scheduler import describe_interval
from studydeck.study.session_tracker import ReviewSession

logger = get_logger(__name__)

RATING_COLORS: Dict[ReviewRating, str] = {
    ReviewRating.AGAIN: "red",
    ReviewRating.HARD: "yellow",
    ReviewRating.GOOD: "green",
    ReviewRating.EASY: "cyan",
}

# Keyboard shortcuts
SHORTCUTS: Dict[str, ReviewRating] = {
    "1": ReviewRating.AGAIN,
    "a": ReviewRating.AGAIN,
    "2": ReviewRating.HARD,
    "h": ReviewRating.HARD,
    "3": ReviewRating.GOOD,
    "g": ReviewRating.GOOD,
    "4": ReviewRating.EASY,
    "e": ReviewRating.EASY,
}

UNDO_KEYS = ("u", "undo")
QUIT_KEYS = ("q", "quit")

PromptFn = Callable[..., str]


def _front_panel(item: StudyItem, position: int, total: int) -> Panel:
    return Panel(
        Text(item.content.primary, style="bold yellow", justify="center"),
        title=f"[bold]Card {position} of {total}[/bold]",
        border_style="blue",
        padding=(1, 4),
    )


def _back_panel(item: StudyItem) -> Panel:
    content = Text(justify="center")
    content.append(item.content.primary, style="bold yellow")
    if item.content.reading:
        content.append(f"\n{item.content.reading}", style="yellow")
    if item.content.romanized:
        content.append(f"\n{item.content.romanized}", style="dim")
    if item.content.meaning:
        content.append(f"\n\n{item.content.meaning}", style="bold white")
    if item.tags:
        content.append(f"\n\n{' '.join('#' + tag for tag in item.tags)}", style="dim")
    return Panel(content, border_style="green", padding=(1, 4))


def get_rating_prompt_panel(previews: Dict[ReviewRating, int]) -> Panel:
    """Panel listing the rating buttons with their next intervals."""
    content = Text()
    for index, rating in enumerate(ReviewRating, 1):
        color = RATING_COLORS[rating]
        if index > 1:
            content.append("\n")
        content.append(f"  [{index}]", style=f"bold {color}")
        content.append(f" {rating.label}", style=color)
        content.append(f" ({rating.value[0]})", style="dim")
        if rating in previews:
            content.append(f" - {describe_interval(previews[rating])}", style="dim")
    content.append("\n  [u] Undo  [q] Quit", style="dim")
    return Panel(content, title="[bold]Rate Your Recall[/bold]", border_style="blue")


class _ProgressSaver:
    """Saves the session collection with progress counted from session start."""

    def __init__(
        self, store: DeckStore, session: ReviewSession, start: StudyProgress, today: date
    ) -> None:
        self.store = store
        self.session = session
        self.start = start
        self.today = today

    @property
    def progress(self) -> StudyProgress:
        return record_reviews(self.start, self.session.tracker.cards_reviewed, self.today)

    async def save(self) -> bool:
        """Persist the session collection. Warns and returns False on failure."""
        try:
            await self.store.save(self.session.items, progress=self.progress)
        except StorageError as e:
            ErrorRenderer.render_warning(
                f"Your last rating was not saved: {e}",
                "Keep reviewing; the next successful save stores all ratings so far",
            )
            return False
        return True


async def _undo(saver: _ProgressSaver, console: Console) -> None:
    restored = saver.session.undo()
    if restored is None:
        console.print("[dim]Nothing to undo[/dim]")
        return
    await saver.save()
    console.print(f"[cyan]↶ Undid rating for {restored.content.primary}[/cyan]")


async def run_review_session(
    store: DeckStore,
    config: Config,
    limit: Optional[int] = None,
    console: Optional[Console] = None,
    prompt: PromptFn = Prompt.ask,
    now: Optional[int] = None,
) -> ReviewSession:
    """Run an interactive review session against a deck store.

    Args:
        store: Deck store to load from and save to
        config: Configuration (scheduler settings)
        limit: Maximum items to review
        console: Output console
        prompt: Input function with the rich Prompt.ask signature
        now: Session time in ms since epoch (default: wall clock)

    Returns:
        The finished (or quit) session
    """
    console = console or get_console()
    items = await store.load(strict=True)
    progress = await store.load_progress(strict=True)
    session = ReviewSession(items, now=now, config=config.scheduler, limit=limit)
    saver = _ProgressSaver(store, session, progress, day_of(now))

    if session.is_complete:
        console.print("[green]No items due. All caught up![/green]")
        return session

    while not session.is_complete:
        item = session.current
        console.print()
        console.print(_front_panel(item, session.position + 1, session.total))

        answer = prompt(
            "[dim]Enter to reveal, u to undo, q to quit[/dim]",
            default="",
            show_default=False,
        )
        answer = answer.strip().lower()
        if answer in QUIT_KEYS:
            break
        if answer in UNDO_KEYS:
            await _undo(saver, console)
            continue

        console.print(_back_panel(item))
        console.print(get_rating_prompt_panel(session.previews()))

        response = prompt(
            "[bold]Your rating[/bold]",
            choices=[*SHORTCUTS.keys(), *UNDO_KEYS[:1], *QUIT_KEYS[:1]],
            default="3",
        )
        response = response.strip().lower()
        if response in QUIT_KEYS:
            break
        if response in UNDO_KEYS:
            await _undo(saver, console)
            continue

        rating = SHORTCUTS[response]
        updated = session.rate(rating, now=now)
        await saver.save()
        color = RATING_COLORS[rating]
        console.print(
            f"[{color}]✓ {rating.label}[/{color}] "
            f"[dim]next review in {describe_interval(updated.interval)}[/dim]"
        )

    _print_summary(session, saver, console)
    return session


def _print_summary(
    session: ReviewSession, saver: _ProgressSaver, console: Console
) -> None:
    stats = session.tracker.get_session_stats()
    console.print()
    if session.is_complete:
        console.print(
            f"[bold]Session complete:[/bold] {stats['cards_reviewed']} reviewed, "
            f"{stats['accuracy']}% recalled"
        )
    else:
        console.print(
            f"[bold]Session ended:[/bold] {stats['cards_reviewed']} reviewed, "
            f"{session.remaining} left"
        )

    progress = saver.progress
    if progress.last_active_date == saver.today.isoformat():
        console.print(f"[magenta]Streak: {progress.current_streak} day(s)[/magenta]")
    unlocked = set(progress.unlocked_achievements) - set(saver.start.unlocked_achievements)
    for achievement in ACHIEVEMENTS:
        if achievement.id in unlocked:
            console.print(
                f"[bold yellow]Achievement unlocked:[/bold yellow] {achievement.title} "
                f"[dim]({achievement.description})[/dim]"
            )
    logger.info("Review session finished", **stats)


@safe_cli_command("review")
def review_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=1, help="Maximum items to review"
    ),
) -> None:
    """Review due items interactively."""
    config = get_config(ctx)
    run_with_store(config, lambda store: run_review_session(store, config, limit=limit))
