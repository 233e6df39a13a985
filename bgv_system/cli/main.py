"""Interactive CLI for the employment verification core using Typer and Rich."""

import asyncio
import email
import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bgv_system.config.settings import settings
from bgv_system.config.logging import get_logger

# Initialize CLI app
app = typer.Typer(
    help="Employment background verification CLI - compare, extract and correlate HR replies",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

_ZONE_STYLE = {"GREEN": "green", "YELLOW": "yellow", "RED": "red"}


def _load_json(path: Path):
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]✗[/red] Cannot read {path}: {e}")
        raise typer.Exit(1)


@app.command()
def status() -> None:
    """
    Display system status and configuration.

    Shows storage, reminder ladder, inbox polling and advisory settings.
    """
    logger.info("Displaying system status")

    table = Table(title="Verification System Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)

    storage = settings.data_dir or "memory only"
    table.add_row("Storage", "✓ Active", storage)

    reminder_status = "✓ Enabled" if settings.reminder_enabled else "✗ Disabled"
    table.add_row(
        "Reminders",
        reminder_status,
        f"every {settings.reminder_interval_hours}h, escalate after {settings.max_reminders}",
    )

    table.add_row(
        "Inbox Poll",
        "✓ Configured",
        f"every {settings.inbox_poll_minutes} min, subjects: {', '.join(settings.reply_subject_keywords)}",
    )

    if settings.advisory_enabled and settings.gemini_api_key:
        advisory_status = "✓ Enabled"
    elif settings.advisory_enabled:
        advisory_status = "⚠ No API key"
    else:
        advisory_status = "✗ Disabled"
    table.add_row("Advisory", advisory_status, settings.gemini_model)

    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")

    console.print(table)


@app.command()
def compare(
    claimed_file: Path = typer.Argument(..., help="JSON file with the claimed FactRecord"),
    verified_file: Path = typer.Argument(..., help="JSON file with the verified FactRecord"),
    tier: str = typer.Option(
        settings.default_service_tier, "--tier", "-t", help="Service tier selecting the rules"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw ComparisonResult"),
) -> None:
    """
    Compare claimed employment facts against verified facts.

    Args:
        claimed_file: Applicant-reported facts (camelCase keys)
        verified_file: Employer-reported facts (camelCase keys)
        tier: BASIC, STANDARD, PREMIUM or ENTERPRISE
    """
    from bgv_system.comparison import Comparator
    from bgv_system.config.rules import rules_for_tier
    from bgv_system.data_management.schemas import FactRecord

    claimed = FactRecord.model_validate(_load_json(claimed_file))
    verified = FactRecord.model_validate(_load_json(verified_file))
    result = Comparator(rules_for_tier(tier.upper())).compare(claimed, verified)
    logger.info(f"Comparison completed with risk score {result.risk_score}")

    if as_json:
        console.print_json(json.dumps(result.to_record(), default=str))
        return

    style = _ZONE_STYLE.get(result.zone.value, "white")
    console.print(Panel(
        f"Risk score: [bold]{result.risk_score}[/bold]\n"
        f"Zone: [{style}]{result.zone.value}[/{style}]\n"
        f"Match rate: {result.match_rate}%",
        title=f"Comparison ({tier.upper()})",
        border_style=style,
    ))

    if result.discrepancies:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Severity")
        table.add_column("Claimed")
        table.add_column("Verified")
        table.add_column("Difference", style="yellow")
        for d in result.discrepancies:
            table.add_row(
                d.field, d.severity.value, d.claimed_value or "", d.verified_value or "", d.difference or ""
            )
        console.print(table)

    if result.skipped:
        console.print(f"[dim]Skipped: {', '.join(result.skipped)}[/dim]")


@app.command()
def extract(
    body_file: Path = typer.Argument(..., help="Plain-text reply body"),
) -> None:
    """
    Classify an HR reply body and show the facts read from it.

    Quoted history is stripped before anything is read.
    """
    from bgv_system.extraction import FactNormalizer

    try:
        body = body_file.read_text()
    except OSError as e:
        console.print(f"[red]✗[/red] Cannot read {body_file}: {e}")
        raise typer.Exit(1)

    reply = FactNormalizer().normalize(body)
    logger.info(f"Reply classified as {reply.response_method.value}")

    console.print(f"[bold cyan]Response method:[/bold cyan] {reply.response_method.value}")
    console.print(f"[bold cyan]Confidence:[/bold cyan] {reply.confidence}")
    if reply.reference_id:
        console.print(f"[bold cyan]Reference:[/bold cyan] {reply.reference_id}")
    if reply.document_url:
        console.print(f"[bold cyan]Document:[/bold cyan] {reply.document_url}")

    facts = {k: v for k, v in reply.facts.to_record().items() if v}
    if facts:
        table = Table(title="Extracted facts", show_header=True, header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        for key, value in facts.items():
            table.add_row(key, str(value))
        console.print(table)

    if reply.freeform_note:
        console.print(Panel(reply.freeform_note, title="Freeform note", border_style="yellow"))


@app.command()
def correlate(
    eml_file: Path = typer.Argument(..., help="Raw RFC 822 message (.eml)"),
    activity_log_file: Optional[Path] = typer.Option(
        None, "--log", "-l", help="Activity log JSON used to build the message registry"
    ),
) -> None:
    """
    Resolve which check an inbound message answers.

    Without --log only the subject tag and body reference strategies can match.
    """
    from bgv_system.correlation import MessageRegistry, ReplyCorrelator
    from bgv_system.data_management.activity_log import ActivityLog
    from bgv_system.integrations.mailbox import InboundMessage

    try:
        raw = eml_file.read_bytes()
    except OSError as e:
        console.print(f"[red]✗[/red] Cannot read {eml_file}: {e}")
        raise typer.Exit(1)

    message = InboundMessage.from_email(email.message_from_bytes(raw))
    registry = MessageRegistry()
    if activity_log_file is not None:
        if not activity_log_file.exists():
            console.print(f"[red]✗[/red] Activity log not found: {activity_log_file}")
            raise typer.Exit(1)
        asyncio.run(registry.rebuild(ActivityLog(str(activity_log_file))))
        console.print(f"[dim]Registry: {len(registry.snapshot)} outbound messages[/dim]")

    result = ReplyCorrelator(registry).correlate(message)
    logger.info(f"Correlation strategy: {result.strategy.value}")

    if result.resolved:
        console.print(
            f"[green]✓[/green] {result.check_id} "
            f"[dim](via {result.strategy.value}, matched on {result.matched_on})[/dim]"
        )
    else:
        console.print("[yellow]⚠[/yellow] Unresolved: no thread, subject tag or body reference matched")
        raise typer.Exit(2)


@app.command()
def version() -> None:
    """Display version information."""
    try:
        installed = metadata.version("bgv-system")
    except metadata.PackageNotFoundError:
        installed = "unknown (not installed)"
    console.print("[bold]Employment Background Verification Core[/bold]")
    console.print(f"Version: {installed}")


if __name__ == "__main__":
    app()
