"""Command-line interface for stridetally.

Built with Typer for commands and Rich for output.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import configure_logging, get_config
from .db import ChallengeCreate, ChallengeStatus, get_db
from .handler import ProgressAccumulator

# Create the main app
app = typer.Typer(
    name="stridetally",
    help="Accumulate workout distance into distance challenges.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def _open_db():
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)
    configure_logging(config.log_level)
    return get_db(str(config.db_path))


def format_challenge_table(challenges: list, title: str = "Challenges") -> Table:
    """Create a rich table for displaying challenges."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Challenge", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Progress", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Window")

    for c in challenges:
        window = f"{c.start_date} - {c.end_date}" if c.start_date else "-"
        table.add_row(
            c.name or c.challenge_id,
            c.status,
            f"{c.completed_meters:,.0f} / {c.target_meters:,.0f} m",
            f"{c.progress_percent:.0f}",
            window,
        )

    return table


# ============================================================================
# Commands
# ============================================================================


@app.command("init-db")
def init_db() -> None:
    """Create the challenge store."""
    db = _open_db()
    db.create_tables()
    print_success(f"Database ready at {db.db_path}")


@app.command()
def load(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with a list of challenges"),
) -> None:
    """Load challenge records from a JSON file."""
    db = _open_db()
    try:
        records = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        print_error(f"Challenge file is not valid JSON: {e}")
        raise typer.Exit(1)
    if isinstance(records, dict):
        records = [records]

    loaded = 0
    for i, record in enumerate(records):
        try:
            data = ChallengeCreate.model_validate(record)
        except ValidationError as e:
            print_error(f"Record {i} is invalid: {e}")
            raise typer.Exit(1)
        db.put_challenge(data)
        loaded += 1

    print_success(f"Loaded {loaded} challenge(s)")


@app.command("list")
def list_challenges(
    user_id: str = typer.Argument(..., help="User to list challenges for"),
    status: Optional[ChallengeStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
) -> None:
    """List a user's challenges."""
    db = _open_db()
    challenges = db.list_challenges(user_id, status=status)
    if not challenges:
        console.print(f"[dim]No challenges for {user_id}[/dim]")
        return
    console.print(format_challenge_table(challenges, title=f"Challenges for {user_id}"))


@app.command()
def process(
    path: Optional[Path] = typer.Argument(None, exists=True, dir_okay=False, help="Event JSON file, stdin if omitted"),
) -> None:
    """Run a workout event through the accumulator."""
    db = _open_db()
    raw = path.read_text() if path else sys.stdin.read()
    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError as e:
        print_error(f"Event is not valid JSON: {e}")
        raise typer.Exit(1)

    result = ProgressAccumulator(db=db).handle(envelope)
    console.print_json(data=result.to_response())

    for update in result.updates:
        marker = "[green]completed[/green]" if update.just_completed else update.status
        console.print(
            f"  {update.challenge_id}: {update.completed_meters:,.0f} / "
            f"{update.target_meters:,.0f} m ({marker})"
        )

    if result.status_code >= 500:
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"stridetally version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
