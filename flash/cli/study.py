"""CLI commands for studying a cardbox and inspecting its progress."""

import logging
import questionary
from questionary import Style
from pathlib import Path
from typing import List, Optional

from flash.core import db
from flash.core.cardbox import Cardbox
from flash.core.config import settings
from flash.core.flashcard import Flashcard
from flash.core.parser import parse_file
from flash.core.validator import CardValidator
from flash.cli.utils import ensure_cardbox, flash_errors, resolve_db_path
from flash.utils.time import days_to_millis, unix_time_millis
from flash.utils.ui import (
    PROMPT_INPUT,
    command_timer,
    console,
    format_duration,
    render_flashcard,
    render_results,
    render_stage_counts,
)

logger = logging.getLogger(__name__)

STUDY_STYLE = Style([
    ('qmark', 'fg:#36cdc4 bold'),
    ('question', 'bold'),
    ('answer', 'fg:white bold'),
])


def _load_cardbox(cardbox_path: Path, db_path: Path) -> Cardbox:
    with flash_errors():
        flashcards = parse_file(ensure_cardbox(cardbox_path))
        progress = db.load(db_path)
        cardbox = Cardbox(settings)
        cardbox.init(flashcards, progress)
    logger.info("Loaded %d flashcards from %s", cardbox.size(), cardbox_path)
    return cardbox


def _ask_lines(card: Flashcard) -> Optional[List[str]]:
    """Prompt for every line of the back; ``None`` if the learner cancelled."""
    received = []
    for _ in card.lines_to_validate():
        answer = questionary.text(
            "",
            qmark=PROMPT_INPUT,
            style=STUDY_STYLE,
        ).ask()
        if answer is None:
            return None
        received.append(answer.strip())
    return received


def study_command(cardbox_path: Path, db_path: Optional[Path] = None, limit: Optional[int] = None):
    """Run a study session until nothing is due, the limit is hit or the learner stops."""
    with command_timer():
        db_path = resolve_db_path(db_path)
        cardbox = _load_cardbox(cardbox_path, db_path)

        console.print(f"[bold blue]Studying:[/bold blue] {cardbox_path.name}")
        console.print(f"[dim]{cardbox.size()} flashcards, {cardbox.num_active()} in progress[/dim]")

        reviewed = 0
        correct = 0
        try:
            while limit is None or reviewed < limit:
                item = cardbox.next()
                if item is None:
                    console.print("\n[green]✓ All due flashcards reviewed![/green]")
                    break

                card, stage = item
                render_flashcard(card, stage)
                received = _ask_lines(card)
                if received is None:
                    console.print("[yellow]Session stopped.[/yellow]")
                    break

                results = CardValidator(card).validate(received)
                passed = CardValidator.passed(results)
                render_results(results, passed)
                with flash_errors():
                    if passed:
                        cardbox.advance(stage)
                        correct += 1
                    else:
                        cardbox.reset(stage)
                reviewed += 1
        except KeyboardInterrupt:
            console.print("\n[yellow]Session interrupted.[/yellow]")

        with flash_errors():
            cardbox.save(db_path)

        console.print(f"\n[bold]Session Complete![/bold]")
        console.print(f"  Flashcards reviewed: {reviewed}")
        console.print(f"  Correct: {correct}")
        due_in = cardbox.next_due_in()
        if due_in:
            console.print(f"[dim]Next flashcard due in: {format_duration(due_in / 1000)}[/dim]")
        render_stage_counts(cardbox.progress())


def stats_command(cardbox_path: Path, db_path: Optional[Path] = None):
    """Show how many flashcards are in each stage."""
    cardbox = _load_cardbox(cardbox_path, resolve_db_path(db_path))
    render_stage_counts(cardbox.progress(), title=cardbox_path.name)


def prune_command(days: int, db_path: Optional[Path] = None):
    """Drop progress records that did not change for ``days`` days."""
    db_path = resolve_db_path(db_path)
    cutoff = unix_time_millis() - days_to_millis(days)
    with flash_errors():
        removed = db.prune(db_path, cutoff)
    console.print(f"[green]Removed {removed} stale progress records.[/green]")
