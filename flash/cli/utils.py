import typer
from contextlib import contextmanager
from pathlib import Path
from typing import Optional
from flash.core.config import settings
from flash.core.errors import FlashError
from flash.utils.ui import console

@contextmanager
def flash_errors():
    """Report core errors in red and end the command with exit code 1."""
    try:
        yield
    except FlashError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

def resolve_db_path(db_path: Optional[Path]) -> Path:
    return (db_path or settings.progress_db_path).expanduser()

def ensure_cardbox(path: Path) -> Path:
    path = path.expanduser()
    if not path.is_file():
        console.print(f"[red]Error: cardbox '{path}' not found.[/red]")
        raise typer.Exit(code=1)
    return path
