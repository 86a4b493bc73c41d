from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme
from rich.text import Text
import logging
from typing import List
from contextlib import contextmanager
import time

from flash.core.cardbox import StageCounts
from flash.core.flashcard import Flashcard
from flash.core.validator import LineResult

flash_theme = Theme({
    "face": "bold white",
    "note": "yellow",
    "template": "dim white",
    "stage": "bold cyan",
    "correct": "green",
    "typo": "bold red",
    "missing": "red underline",
    "extra": "red strike",
})

console = Console(theme=flash_theme, style="white")

# Prompt shown whenever the learner has to type
PROMPT_INPUT = ">"


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich so they do not garble the session output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )

@contextmanager
def command_timer():
    """Measure and print elapsed time for a command."""
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed = time.monotonic() - start
        console.print(f"Elapsed: {elapsed:.2f}s")

def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds / 60)} minutes"
    if seconds < 86400:
        return f"{int(seconds / 3600)} hours"
    return f"{int(seconds / 86400)} days"

def render_flashcard(card: Flashcard, stage: int) -> None:
    """Show the front of a flashcard, its note and the fill-the-blank template."""
    console.print("\n" + "─" * 50)
    console.print(f"[stage]Stage {stage}[/stage] [dim]{card.subject}[/dim]")
    console.print(Text(card.face, style="face"))
    if card.note:
        console.print(Text(f"({card.note})", style="note"))
    for line in card.lines_to_display():
        if line:
            console.print(Text(line, style="template"))
    console.print()

def format_line_result(result: LineResult) -> Text:
    """Colour the expected text per character by whether it was typed right."""
    text = Text()
    for i, (char, ok) in enumerate(zip(result.expected, result.matches)):
        if ok:
            text.append(char, style="correct")
        elif i < len(result.received):
            text.append(char, style="typo")
        else:
            text.append(char, style="missing")
    extra = result.received[len(result.expected):]
    if extra:
        text.append(extra, style="extra")
    return text

def render_results(results: List[LineResult], passed: bool) -> None:
    for result in results:
        line = Text(f"{PROMPT_INPUT} ")
        line.append_text(format_line_result(result))
        if result.typos:
            line.append(f"  ({result.typos} typos)", style="dim")
        console.print(line)
    if passed:
        console.print("[bold green]✓ Correct![/bold green]")
    else:
        console.print("[bold red]✗ Back to stage 1.[/bold red]")

def render_stage_counts(counts: StageCounts, title: str = "Progress") -> None:
    table = Table(title=title)
    table.add_column("Stage", style="stage")
    table.add_column("Flashcards", justify="right")
    labels = ["new", "1", "2", "3", "4", "5 (mastered)"]
    for label, count in zip(labels, counts):
        table.add_row(label, str(count))
    table.add_row("total", str(sum(counts)), style="bold")
    console.print(table)

def render_panel(message: str, title: str) -> None:
    console.print(Panel(message, title=title, expand=False))
