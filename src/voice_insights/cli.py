"""CLI entry point for voice insights."""

import asyncio
from pathlib import Path

import click
from rich.console import Console

from .capture import BufferedTranscriptSource
from .db import Database
from .heuristic import HeuristicSummarizer
from .orchestrator import DEFAULT_TIMEOUT, Orchestrator
from .reports import print_conversation_detail, print_conversations, print_notification, print_usage
from .store import ConversationStore, UserSession
from .summarizer import Summarizer

console = Console()

DEFAULT_DB = Path.home() / ".voice-insights" / "voice.db"


def _orchestrator(ctx, db: Database, source=None) -> Orchestrator:
    summarizer = HeuristicSummarizer() if ctx.obj["offline"] else Summarizer()
    orchestrator = Orchestrator(
        ConversationStore(db),
        summarizer,
        source=source,
        timeout=ctx.obj["timeout"],
        on_notify=print_notification,
    )
    orchestrator.init()
    return orchestrator


def _require_user(db: Database) -> bool:
    user = UserSession(db).load()
    if user is None:
        console.print("[red]Not logged in.[/red]")
        console.print("Run 'voice-insights login <email>' first.")
        return False
    return True


@click.group()
@click.option(
    "--db",
    type=click.Path(),
    default=str(DEFAULT_DB),
    help="Path to SQLite database",
)
@click.option("--offline", is_flag=True, help="Use the keyword analyzer instead of Claude")
@click.option("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Seconds to wait for an analysis")
@click.pass_context
def cli(ctx, db, offline, timeout):
    """Record conversations and turn them into insights."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db)
    ctx.obj["offline"] = offline
    ctx.obj["timeout"] = timeout if timeout > 0 else None


@cli.command()
@click.argument("email")
@click.pass_context
def login(ctx, email):
    """Log in as EMAIL."""
    if "@" not in email:
        console.print(f"[red]Not an email address: {email}[/red]")
        return

    with Database(ctx.obj["db_path"]) as db:
        user = UserSession(db).login(email)
    console.print(f"[green]Logged in as {user.name}[/green] ({user.email})")


@cli.command()
@click.pass_context
def logout(ctx):
    """Log out and forget all stored conversations."""
    with Database(ctx.obj["db_path"]) as db:
        UserSession(db).logout()
    console.print("[yellow]Logged out. Conversations cleared.[/yellow]")


@cli.command()
@click.pass_context
def whoami(ctx):
    """Show the logged-in user."""
    with Database(ctx.obj["db_path"]) as db:
        user = UserSession(db).load()
    if user is None:
        console.print("[yellow]Not logged in.[/yellow]")
    else:
        console.print(f"{user.name} ({user.email})")


@cli.command()
@click.pass_context
def record(ctx):
    """Record a transcript from stdin; EOF stops recording and starts analysis."""
    with Database(ctx.obj["db_path"]) as db:
        if not _require_user(db):
            return

        source = BufferedTranscriptSource()
        orchestrator = _orchestrator(ctx, db, source)
        if not orchestrator.start():
            return

        console.print("[cyan]Recording... type the conversation, Ctrl-D to stop.[/cyan]")
        stdin = click.get_text_stream("stdin")
        for line in stdin:
            source.feed(line)
            if not orchestrator.recording:
                return

        console.print("[cyan]Analyzing...[/cyan]")
        conv = asyncio.run(orchestrator.stop())
        if conv is None:
            console.print("[yellow]Nothing was recorded.[/yellow]")
            return
        print_conversation_detail(conv)


@cli.command()
@click.argument("transcript")
@click.pass_context
def analyze(ctx, transcript):
    """Analyze TRANSCRIPT as a finished recording."""
    with Database(ctx.obj["db_path"]) as db:
        if not _require_user(db):
            return

        orchestrator = _orchestrator(ctx, db)
        console.print("[cyan]Analyzing...[/cyan]")
        conv = asyncio.run(orchestrator.analyze(transcript))
        if conv is not None:
            print_conversation_detail(conv)


@cli.command("list")
@click.pass_context
def list_conversations(ctx):
    """List conversations, most recent first."""
    with Database(ctx.obj["db_path"]) as db:
        if not _require_user(db):
            return
        orchestrator = _orchestrator(ctx, db)
        print_conversations(orchestrator.list())


@cli.command()
@click.argument("conversation_id", type=int)
@click.pass_context
def show(ctx, conversation_id):
    """Show detailed view of a conversation."""
    with Database(ctx.obj["db_path"]) as db:
        if not _require_user(db):
            return
        orchestrator = _orchestrator(ctx, db)
        conv = orchestrator.select(conversation_id)
        if conv is None:
            console.print(f"[red]Conversation {conversation_id} not found[/red]")
            return
        print_conversation_detail(conv)


@cli.command()
@click.argument("conversation_id", type=int)
@click.pass_context
def retry(ctx, conversation_id):
    """Analyze a conversation again."""
    with Database(ctx.obj["db_path"]) as db:
        if not _require_user(db):
            return
        orchestrator = _orchestrator(ctx, db)
        if orchestrator.store.get(conversation_id) is None:
            console.print(f"[red]Conversation {conversation_id} not found[/red]")
            return

        console.print("[cyan]Analyzing...[/cyan]")
        conv = asyncio.run(orchestrator.retry(conversation_id))
        print_conversation_detail(conv)


@cli.command()
@click.argument("conversation_id", type=int)
@click.pass_context
def delete(ctx, conversation_id):
    """Delete a conversation."""
    with Database(ctx.obj["db_path"]) as db:
        if not _require_user(db):
            return
        orchestrator = _orchestrator(ctx, db)
        if orchestrator.delete(conversation_id):
            console.print(f"[green]Deleted conversation {conversation_id}[/green]")
        else:
            console.print(f"[red]Conversation {conversation_id} not found[/red]")


@cli.command()
@click.pass_context
def usage(ctx):
    """Show token usage and estimated cost."""
    with Database(ctx.obj["db_path"]) as db:
        if not _require_user(db):
            return
        orchestrator = _orchestrator(ctx, db)
        print_usage(orchestrator.list(), orchestrator.aggregate_usage())


if __name__ == "__main__":
    cli()
