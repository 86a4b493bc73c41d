import typer
from pathlib import Path
from typing import Optional
# Import config app early since it's used for the help menu and registration
from flash.cli.config import config_app
from flash.utils.ui import setup_logging

app = typer.Typer(help="flash: spaced-repetition flashcards for the terminal")

# Register commands
app.add_typer(config_app, name="config")

DB_OPTION = typer.Option(None, "--db", help="Progress database (defaults to ~/.flash/progress.db)")

@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
):
    """flash: spaced-repetition flashcards for the terminal"""
    setup_logging(verbose)

@app.command(name="study")
def study(
    cardbox: Path = typer.Argument(..., help="Cardbox file to study"),
    db: Optional[Path] = DB_OPTION,
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum flashcards per session"),
):
    """Start a study session."""
    from flash.cli.study import study_command
    return study_command(cardbox, db_path=db, limit=limit)

@app.command(name="stats")
def stats(
    cardbox: Path = typer.Argument(..., help="Cardbox file to inspect"),
    db: Optional[Path] = DB_OPTION,
):
    """Show how many flashcards are in each stage."""
    from flash.cli.study import stats_command
    return stats_command(cardbox, db_path=db)

@app.command(name="prune")
def prune(
    days: int = typer.Option(..., "--days", "-d", min=0, help="Drop records unchanged for this many days"),
    db: Optional[Path] = DB_OPTION,
):
    """Remove stale progress records, e.g. of deleted flashcards."""
    from flash.cli.study import prune_command
    return prune_command(days, db_path=db)

if __name__ == "__main__":
    app()
