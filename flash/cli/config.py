import json
import typer
import questionary
from pathlib import Path
from flash.core.config import DEBUG_COOLDOWNS, ENV_FILE, settings
from flash.utils.ui import console, render_panel

config_app = typer.Typer(help="Configure flash settings.")

def _prompt_keep_current(label: str, current: str) -> str:
    console.print(f"[dim]Current {label}: {current}[/dim]")
    val = typer.prompt(label, default="", show_default=False)
    return val.strip() if val.strip() else current

def _prompt_int(label: str, current: int, minimum: int = 0) -> int:
    while True:
        raw = _prompt_keep_current(label, str(current))
        if raw.isdigit() and int(raw) >= minimum:
            return int(raw)
        console.print(f"[red]Please enter a whole number >= {minimum}.[/red]")

def _configure_db():
    console.print("\n[bold]Progress Database[/bold]")
    current = str(settings.progress_db_path)
    db_path = _prompt_keep_current("Progress database path", current)
    if db_path != current:
        settings.db_path = Path(db_path).expanduser().resolve()

def _configure_scheduling():
    console.print("\n[bold]Scheduling[/bold]")
    settings.initial_queue_size = _prompt_int(
        "New flashcards kept in stage 1", settings.initial_queue_size, minimum=1
    )
    console.print("[dim]Cooldowns are given in seconds; stage 1 is always 0.[/dim]")
    cooldowns = [0]
    for stage, current in enumerate(settings.stage_cooldowns[1:], start=2):
        cooldowns.append(_prompt_int(f"Stage {stage} cooldown", current, minimum=cooldowns[-1]))
    settings.stage_cooldowns = cooldowns
    settings.debug = questionary.confirm(
        f"Use debug cooldowns {DEBUG_COOLDOWNS}?", default=settings.debug
    ).ask()

def _configure_validation():
    console.print("\n[bold]Validation[/bold]")
    settings.allowed_typos_per_line = _prompt_int(
        "Typos allowed per line", settings.allowed_typos_per_line
    )

@config_app.callback(invoke_without_command=True)
def config_main(ctx: typer.Context):
    """Interactive setup wizard."""
    if ctx.invoked_subcommand is not None:
        return
    console.print("[bold blue]flash Configuration[/bold blue]")
    _configure_db()
    _configure_scheduling()
    _configure_validation()
    settings.save()
    console.print(f"\n[green]Configuration saved to {ENV_FILE}[/green]")

@config_app.command(name="show")
def show():
    """Print the current settings."""
    render_panel(
        "\n".join([
            f"Progress database: {settings.progress_db_path}",
            f"Initial queue size: {settings.initial_queue_size}",
            f"Stage cooldowns (s): {json.dumps(settings.stage_cooldowns)}",
            f"Debug cooldowns: {settings.debug}",
            f"Typos allowed per line: {settings.allowed_typos_per_line}",
        ]),
        title="flash settings",
    )
