"""Report generation for CLI output."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import AnalysisStatus, Conversation
from .orchestrator import Notification
from .stats import estimate_cost, format_token_usage, get_usage_stats

console = Console()

STATUS_COLORS = {
    AnalysisStatus.PENDING: "white",
    AnalysisStatus.ANALYZING: "yellow",
    AnalysisStatus.SUCCEEDED: "green",
    AnalysisStatus.FAILED: "red",
}


def _status(status: AnalysisStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def print_notification(notification: Notification):
    color = "red" if notification.level == "error" else "green"
    console.print(f"[{color}]{notification.message}[/{color}]")


def print_conversations(conversations: list[Conversation], selected_id: int | None = None):
    """Print the conversation list, most recent first."""
    if not conversations:
        console.print("[yellow]No conversations yet. Run 'voice-insights record' first.[/yellow]")
        return

    table = Table(title="Conversations")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Date")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Tokens", justify="right")

    for conv in conversations:
        marker = "*" if conv.id == selected_id else ""
        tokens = f"{conv.token_usage.total_tokens:,}" if conv.token_usage else "-"
        table.add_row(
            f"{marker}{conv.id}",
            conv.created_at.strftime("%Y-%m-%d %H:%M"),
            conv.title,
            _status(conv.status),
            tokens,
        )

    console.print(table)


def print_conversation_detail(conv: Conversation):
    """Print one conversation with its analysis."""
    console.print(
        Panel(
            conv.transcript,
            title=f"[bold]{conv.title}[/bold]",
            subtitle=f"{conv.created_at.strftime('%Y-%m-%d %H:%M')} | {_status(conv.status)}",
        )
    )

    sections = [
        ("Main Points", "cyan", conv.analysis.main_points),
        ("Action Items", "magenta", conv.analysis.action_items),
        ("Next Steps", "green", conv.analysis.next_steps),
    ]
    for heading, color, items in sections:
        console.print(f"\n[bold {color}]{heading}[/bold {color}]")
        for item in items:
            console.print(f"  - {item}")

    if conv.token_usage:
        usage = conv.token_usage
        console.print(
            f"\n[dim]{format_token_usage(usage.total_tokens)} "
            f"({usage.prompt_tokens} prompt, {usage.completion_tokens} completion), "
            f"est. {estimate_cost(usage.total_tokens)}[/dim]"
        )
    if conv.status == AnalysisStatus.FAILED:
        console.print(f"\n[yellow]Run 'voice-insights retry {conv.id}' to analyze again.[/yellow]")


def print_usage(conversations: list[Conversation], total_tokens: int):
    """Print token usage and cost summary."""
    stats = get_usage_stats(conversations)

    table = Table(title="Usage")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Conversations", str(stats["conversations"]))
    for status, count in stats["status_counts"].items():
        table.add_row(f"  {status.value.capitalize()}", str(count))
    table.add_row("Prompt Tokens", f"{stats['prompt_tokens']:,}")
    table.add_row("Completion Tokens", f"{stats['completion_tokens']:,}")
    table.add_row("Total Tokens", format_token_usage(total_tokens))
    table.add_row("Estimated Cost", estimate_cost(total_tokens))

    console.print(table)
