"""
Tandem: Main CLI for immersive language learning.

A Rich terminal interface over the tutor workspaces.

Commands:
- tandem bootstrap LANG      - Create a workspace for a language
- tandem languages           - List bootstrapped languages
- tandem delete LANG         - Remove a workspace (asks first)
- tandem send LANG MESSAGE   - Send one message and print the reply
- tandem chat LANG           - Interactive conversation
- tandem history LANG        - Show the latest conversation (--json for raw turns)
- tandem vocabulary LANG     - Show tracked words
- tandem grammar LANG        - Show tracked grammar rules
- tandem due LANG            - Words due for review
- tandem word / rule / difficulty - Update tracked progress directly
"""
from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from loguru import logger
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .agent import LEARNING_MODES
from .config import Settings, get_settings
from .exceptions import TandemError
from .orchestrator import SessionOrchestrator
from .progress import ProgressLedger, RecallQuality
from .workspace import WorkspaceManager

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="tandem",
    help="Tandem: immersive language tutor",
    no_args_is_help=True,
)
word_app = typer.Typer(help="Update tracked vocabulary", no_args_is_help=True)
rule_app = typer.Typer(help="Update tracked grammar rules", no_args_is_help=True)
app.add_typer(word_app, name="word")
app.add_typer(rule_app, name="rule")

console = Console()

EXIT_COMMANDS = {":q", ":quit", ":exit"}

STYLES = {
    "user": "bold cyan",
    "assistant": "bold green",
    "error": "bold red",
    "dim": "dim",
}


# =============================================================================
# Helpers
# =============================================================================


def configure_logging(settings: Settings) -> None:
    """Route loguru to stderr and, when configured, a rotating debug log."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

    log_file = settings.get_log_file()
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            rotation="1 MB",
            retention=5,
            encoding="utf-8",
        )


@contextmanager
def _errors_as_exit() -> Iterator[None]:
    """Print tandem errors in red and exit with status 1."""
    try:
        yield
    except TandemError as e:
        console.print(f"[{STYLES['error']}]{e}[/{STYLES['error']}]")
        raise typer.Exit(1) from e


def _workspaces() -> WorkspaceManager:
    settings = get_settings()
    return WorkspaceManager(settings.data_dir, settings.tracker_dir_name)


def _ledger(language: str) -> ProgressLedger:
    return ProgressLedger(_workspaces().require(language))


def _check_mode(mode: str) -> str:
    if mode not in LEARNING_MODES:
        raise typer.BadParameter(f"choose from {', '.join(LEARNING_MODES)}")
    return mode


def display_reply(reply: str) -> None:
    console.print(Panel(Markdown(reply), title="tutor", title_align="left", border_style="green"))


async def _send_once(language: str, message: str, mode: str) -> str:
    orchestrator = SessionOrchestrator(get_settings())
    reply = await orchestrator.send_message(language, message, mode)
    display_reply(reply)

    # Keep the process alive until the tracker finishes writing progress
    with console.status("[dim]Updating progress...[/dim]"):
        await orchestrator.wait_for_trackers()
    return reply


async def _chat_loop(language: str, mode: str) -> None:
    orchestrator = SessionOrchestrator(get_settings())
    console.print(f"[dim]Type {' / '.join(sorted(EXIT_COMMANDS))} to leave.[/dim]\n")

    while True:
        message = await asyncio.to_thread(Prompt.ask, f"[{STYLES['user']}]you[/{STYLES['user']}]")
        if message.strip() in EXIT_COMMANDS:
            break
        if not message.strip():
            continue

        try:
            with console.status("[dim]Thinking...[/dim]"):
                reply = await orchestrator.send_message(language, message, mode)
        except TandemError as e:
            console.print(f"[{STYLES['error']}]{e}[/{STYLES['error']}]")
            continue
        display_reply(reply)

    if orchestrator.pending_trackers:
        with console.status("[dim]Updating progress...[/dim]"):
            await orchestrator.wait_for_trackers()


# =============================================================================
# Workspace Commands
# =============================================================================


@app.command()
def bootstrap(language: str = typer.Argument(..., help="Language to learn, e.g. Korean")) -> None:
    """Create a workspace for a new language."""
    with _errors_as_exit():
        workspace = _workspaces().bootstrap(language)
    console.print(f"[green]Successfully bootstrapped {language}[/green]")
    console.print(f"[dim]{workspace.path}[/dim]")


@app.command()
def languages() -> None:
    """List bootstrapped languages."""
    with _errors_as_exit():
        manager = _workspaces()
        configs = [manager.get_config(name) for name in manager.list_languages()]

    if not configs:
        console.print("[yellow]No languages yet.[/yellow] Run: tandem bootstrap <language>")
        return

    table = Table(title="Languages")
    table.add_column("Language", style="bold")
    table.add_column("Script")
    table.add_column("Romanization")
    table.add_column("Started")

    for config in configs:
        table.add_row(
            config.language,
            config.native_script,
            config.romanization,
            config.started.isoformat(),
        )

    console.print(table)


@app.command()
def delete(
    language: str = typer.Argument(..., help="Language to delete"),
    confirm: bool = typer.Option(
        False,
        "--yes", "-y",
        help="Skip confirmation",
    ),
) -> None:
    """Delete a language and all its progress. This cannot be undone."""
    msg = f"Delete {language} and ALL its progress? This cannot be undone!"
    if not confirm and not Confirm.ask(msg, default=False):
        raise typer.Exit(0)

    with _errors_as_exit():
        _workspaces().delete(language)
    console.print(f"[green]Deleted {language}[/green]")


# =============================================================================
# Chat Commands
# =============================================================================


@app.command()
def send(
    language: str = typer.Argument(..., help="Workspace language"),
    message: str = typer.Argument(..., help="What you want to say"),
    mode: str = typer.Option("chat", "--mode", "-m", callback=_check_mode, help="Learning mode"),
) -> None:
    """Send one message and print the tutor's reply."""
    with _errors_as_exit():
        asyncio.run(_send_once(language, message, mode))


@app.command()
def chat(
    language: str = typer.Argument(..., help="Workspace language"),
    mode: str = typer.Option("chat", "--mode", "-m", callback=_check_mode, help="Learning mode"),
) -> None:
    """Start an interactive conversation with the tutor."""
    with _errors_as_exit():
        _workspaces().require(language)
    console.print(f"\n[bold cyan]Tandem[/bold cyan] - {language} ({mode})")
    console.print("=" * 40)

    try:
        asyncio.run(_chat_loop(language, mode))
    except KeyboardInterrupt:
        console.print("\n[yellow]Conversation ended.[/yellow]")


@app.command()
def history(
    language: str = typer.Argument(..., help="Workspace language"),
    as_json: bool = typer.Option(False, "--json", help="Print turns as JSON"),
) -> None:
    """Show the latest conversation with the tutor."""
    with _errors_as_exit():
        turns = SessionOrchestrator(get_settings()).get_chat_history(language)

    if as_json:
        console.print_json(data=[turn.to_dict() for turn in turns])
        return

    if not turns:
        console.print("[dim]No conversation yet.[/dim]")
        return

    for turn in turns:
        style = STYLES[turn.role]
        console.print(f"[{style}]{turn.role}[/{style}]")
        console.print(turn.content, markup=False)
        console.print()


# =============================================================================
# Progress Commands
# =============================================================================


@app.command()
def vocabulary(
    language: str = typer.Argument(..., help="Workspace language"),
    raw: bool = typer.Option(False, "--raw", help="Print vocabulary.json as stored"),
) -> None:
    """Show tracked vocabulary."""
    with _errors_as_exit():
        if raw:
            console.print(_workspaces().get_vocabulary(language), markup=False, highlight=False)
            return
        store = _ledger(language).load_vocabulary()

    table = Table(title=f"{store.language} vocabulary")
    table.add_column("Word", style="bold")
    table.add_column("Meaning")
    table.add_column("Reps", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Next review")

    for record in store.words:
        next_review = record.next_review.isoformat()
        if record.is_due():
            next_review = f"[yellow]{next_review}[/yellow]"
        table.add_row(
            record.word,
            record.meaning,
            str(record.repetitions),
            f"{record.interval}d",
            f"{record.ease:.2f}",
            next_review,
        )

    console.print(table)


@app.command()
def grammar(
    language: str = typer.Argument(..., help="Workspace language"),
    raw: bool = typer.Option(False, "--raw", help="Print grammar.json as stored"),
) -> None:
    """Show tracked grammar rules."""
    with _errors_as_exit():
        if raw:
            console.print(_workspaces().get_grammar(language), markup=False, highlight=False)
            return
        store = _ledger(language).load_grammar()

    table = Table(title=f"{store.language} grammar")
    table.add_column("Rule", style="bold")
    table.add_column("Level")
    table.add_column("Stars")
    table.add_column("Streak", justify="right")
    table.add_column("Last used")

    for record in store.rules:
        stars = "★" * record.stars + "☆" * max(0, 5 - record.stars)
        if record.permanent:
            stars = f"[green]{stars}[/green]"
        table.add_row(
            record.rule,
            record.level,
            stars,
            str(record.correct_streak),
            record.last_used.isoformat(),
        )

    console.print(table)


@app.command()
def due(language: str = typer.Argument(..., help="Workspace language")) -> None:
    """List words due for review today."""
    with _errors_as_exit():
        words = _ledger(language).due_words()

    if not words:
        console.print("[green]Nothing due for review![/green]")
        return

    console.print(f"\n[bold]{len(words)} word(s) due[/bold]")
    for record in words:
        console.print(f"  {record.word}  [dim]{record.meaning} ({record.next_review})[/dim]")


@word_app.command("add")
def word_add(
    language: str = typer.Argument(..., help="Workspace language"),
    word: str = typer.Argument(...),
    meaning: str = typer.Argument(""),
) -> None:
    """Start tracking a word."""
    with _errors_as_exit():
        added = _ledger(language).add_word(word, meaning)
    console.print(f"Added word: {word}" if added else f"Word '{word}' already exists")


@word_app.command("use")
def word_use(
    language: str = typer.Argument(..., help="Workspace language"),
    word: str = typer.Argument(...),
) -> None:
    """Record one correct use of a word (SM-2)."""
    with _errors_as_exit():
        record = _ledger(language).record_word_use(word)
    console.print(
        f"{word}: repetitions={record.repetitions} interval={record.interval}d "
        f"next_review={record.next_review}"
    )


@word_app.command("recall")
def word_recall(
    language: str = typer.Argument(..., help="Workspace language"),
    word: str = typer.Argument(...),
    quality: RecallQuality = typer.Argument(..., help="forgot, hard, good or easy"),
) -> None:
    """Grade an explicit review of a word."""
    with _errors_as_exit():
        record = _ledger(language).recall_word(word, quality)
    console.print(
        f"Marked '{word}' as {quality.value}: interval={record.interval}d ease={record.ease:.2f}"
    )


@word_app.command("note")
def word_note(
    language: str = typer.Argument(..., help="Workspace language"),
    word: str = typer.Argument(...),
    note: str = typer.Argument(...),
) -> None:
    """Set the note on a tracked word."""
    with _errors_as_exit():
        _ledger(language).update_word_note(word, note)
    console.print(f"Updated note for '{word}'")


@rule_app.command("add")
def rule_add(
    language: str = typer.Argument(..., help="Workspace language"),
    rule: str = typer.Argument(...),
    description: str = typer.Argument(...),
    level: str = typer.Argument("A1", help="CEFR level A1-C2"),
) -> None:
    """Start tracking a grammar rule."""
    with _errors_as_exit():
        added = _ledger(language).add_grammar(rule, description, level)
    console.print(f"Added grammar rule: {rule}" if added else f"Rule '{rule}' already exists")


@rule_app.command("use")
def rule_use(
    language: str = typer.Argument(..., help="Workspace language"),
    rule: str = typer.Argument(...),
    incorrect: bool = typer.Option(False, "--incorrect", help="The rule was used wrongly"),
) -> None:
    """Record one use of a grammar rule."""
    with _errors_as_exit():
        record = _ledger(language).record_grammar_use(rule, correct=not incorrect)
    console.print(f"{rule}: stars={record.stars} streak={record.correct_streak}")


@app.command()
def difficulty(
    language: str = typer.Argument(..., help="Workspace language"),
    direction: str = typer.Argument(..., help="easier, harder, auto, or A1-C2"),
    reason: str = typer.Argument(""),
) -> None:
    """Adjust the tutor's difficulty level."""
    with _errors_as_exit():
        _ledger(language).adjust_difficulty(direction, reason)
    console.print(f"Adjusted difficulty to: {direction}")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
