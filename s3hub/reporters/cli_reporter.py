"""
CLI Reporter Module
===================

Provides rich terminal output for s3hub using the Rich library.

This module creates terminal displays for:
- Live progress of bulk deletes
- Delete outcome summaries with a table of failed objects
- Bucket, object and region listings
- Error highlighting and warnings

Classes
-------
CLIReporter
    Main reporter class for terminal output.
DeleteProgressBar
    Context manager turning DeleteProgress events into a progress bar.

Example
-------
>>> from s3hub.reporters import CLIReporter
>>>
>>> reporter = CLIReporter()
>>> with reporter.progress_bar("my-bucket") as bar:
...     outcome = deleter.delete_all("my-bucket", progress_callback=bar.update)
>>> reporter.report_outcome(outcome)

Notes
-----
Object keys are printed with markup escaped, so keys containing
square brackets are shown verbatim.

See Also
--------
rich : Python library for rich text and formatting.
JSONReporter : For programmatic access.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from s3hub.cleaners.bucket_cleaner import BucketDeleteStatus, BucketDeleteSummary
from s3hub.core.models import (
    DeleteOutcome,
    DeleteProgress,
    ObjectIdentifierSet,
    OutcomeStatus,
    Region,
)
from s3hub.stores.s3_store import BucketInfo

# Module logger
logger = logging.getLogger(__name__)

# Failed objects shown in the summary table before it is cut off.
MAX_FAILURES_SHOWN = 20

STATUS_STYLES = {
    OutcomeStatus.SUCCESS: "green",
    OutcomeStatus.PARTIAL_FAILURE: "yellow",
    OutcomeStatus.FATAL_FAILURE: "red",
    OutcomeStatus.CANCELLED: "yellow",
}


class DeleteProgressBar:
    """
    Progress bar fed by :class:`DeleteProgress` events.

    Pass :meth:`update` as the deleter's ``progress_callback``. The
    deleter serializes callbacks, so the bar never moves backwards.
    """

    def __init__(self, console: Console, description: str) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[red]{task.fields[failed]} failed"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._description = description
        self._task = None

    def __enter__(self) -> "DeleteProgressBar":
        self._progress.start()
        self._task = self._progress.add_task(self._description, total=None, failed=0)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._progress.stop()

    def update(self, event: DeleteProgress) -> None:
        self._progress.update(
            self._task,
            total=event.total,
            completed=event.processed,
            failed=event.failed,
        )


class CLIReporter:
    """
    Reporter for displaying s3hub results in the terminal.

    Parameters
    ----------
    console : Console, optional
        Rich Console instance. If not provided, creates a new one.

    Attributes
    ----------
    console : Console
        The Rich Console used for output.

    Examples
    --------
    >>> reporter = CLIReporter()
    >>> reporter.report_outcome(outcome)

    With custom console:

    >>> console = Console(force_terminal=True)
    >>> reporter = CLIReporter(console=console)
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the CLI reporter with a Rich Console."""
        self.console = console or Console()
        logger.debug("Initialized CLIReporter")

    # =========================================================================
    # Public Methods: Delete Results
    # =========================================================================

    def progress_bar(self, bucket: str) -> DeleteProgressBar:
        """
        Create a progress bar for a bulk delete of ``bucket``.

        Example
        -------
        >>> with reporter.progress_bar("my-bucket") as bar:
        ...     deleter.delete_set("my-bucket", objects, progress_callback=bar.update)
        """
        return DeleteProgressBar(self.console, f"Deleting from {escape(bucket)}")

    def report_outcome(self, outcome: DeleteOutcome) -> None:
        """
        Report the outcome of one bulk delete.

        Parameters
        ----------
        outcome : DeleteOutcome
            Outcome returned by the deleter, or carried by the error it raised.
        """
        self._print_header(outcome)
        self._print_outcome_summary(outcome)
        if outcome.failures:
            self._print_failures_table(outcome)

    def report_bucket_summary(self, summary: BucketDeleteSummary) -> None:
        """
        Report the results of deleting several buckets.

        Parameters
        ----------
        summary : BucketDeleteSummary
            Summary returned by the bucket cleaner.
        """
        table = Table(title="\nBucket Deletion", title_style="bold")
        table.add_column("Bucket", style="cyan", no_wrap=True)
        table.add_column("Region", style="yellow")
        table.add_column("Objects", justify="right")
        table.add_column("Status")
        table.add_column("Error", style="dim", max_width=50)

        styles = {
            BucketDeleteStatus.SUCCESS: "green",
            BucketDeleteStatus.FAILED: "red",
            BucketDeleteStatus.SKIPPED: "dim",
            BucketDeleteStatus.DRY_RUN: "blue",
            BucketDeleteStatus.CANCELLED: "yellow",
        }
        for result in summary.results:
            style = styles[result.status]
            table.add_row(
                escape(result.bucket),
                result.region or "-",
                str(result.object_count),
                f"[{style}]{result.status.value}[/]",
                escape(self._truncate(result.error_message or "", 50)),
            )
        self.console.print(table)

        self.console.print(
            f"\nDeleted: [green]{summary.deleted}[/]  "
            f"Failed: [red]{summary.failed}[/]  "
            f"Skipped: {summary.skipped}  "
            f"Dry run: {summary.dry_run}"
        )

    def print_dry_run(self, bucket: str, objects: ObjectIdentifierSet) -> None:
        """Print what a delete would remove without removing it."""
        self.console.print(
            f"\n[blue bold]Dry run:[/blue bold] would delete "
            f"{len(objects)} objects from {escape(bucket)}"
        )
        for identifier in list(objects)[:MAX_FAILURES_SHOWN]:
            self.console.print(f"  [dim]{escape(str(identifier))}[/dim]")
        if len(objects) > MAX_FAILURES_SHOWN:
            self.console.print(f"  [dim]... and {len(objects) - MAX_FAILURES_SHOWN} more[/dim]")

    # =========================================================================
    # Public Methods: Listings
    # =========================================================================

    def print_buckets(self, buckets: List[BucketInfo]) -> None:
        """Print a table of buckets."""
        if not buckets:
            self.console.print("[dim]No buckets found.[/dim]")
            return

        table = Table(title="S3 Buckets", title_style="bold")
        table.add_column("Bucket", style="cyan", no_wrap=True)
        table.add_column("Region", style="yellow")
        table.add_column("Created", style="dim")
        for info in buckets:
            table.add_row(
                escape(info.bucket.name),
                info.region.value if info.region else "-",
                info.creation_date.strftime("%Y-%m-%d %H:%M:%S")
                if info.creation_date else "-",
            )
        self.console.print(table)

    def print_objects(self, bucket: str, objects: ObjectIdentifierSet) -> None:
        """Print every object (version) in a bucket, one per line."""
        if objects.empty:
            self.console.print(f"[dim]{escape(bucket)} is empty.[/dim]")
            return
        for identifier in objects:
            if identifier.version_id:
                self.console.print(
                    f"{escape(identifier.key)}  [dim]{escape(identifier.version_id)}[/dim]"
                )
            else:
                self.console.print(escape(identifier.key))
        self.console.print(f"\n[dim]{len(objects)} objects[/dim]")

    def print_regions(self, regions: Iterable[Region]) -> None:
        """Print the supported regions."""
        for region in regions:
            self.console.print(region.value)

    # =========================================================================
    # Private Methods: Output Formatting
    # =========================================================================

    def _print_header(self, outcome: DeleteOutcome) -> None:
        header_text = Text()
        header_text.append(f"\nDelete Report: {outcome.bucket}\n", style="bold blue")
        header_text.append(f"Region: {outcome.region or 'unknown'}", style="dim")
        self.console.print(Panel(header_text, border_style="blue"))

    def _print_outcome_summary(self, outcome: DeleteOutcome) -> None:
        summary = Table(show_header=False, box=None, padding=(0, 2))
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", style="white")

        style = STATUS_STYLES[outcome.status]
        summary.add_row("Status:", f"[{style}]{outcome.status.value}[/]")
        summary.add_row("Objects:", str(outcome.total))
        summary.add_row("Deleted:", f"[green]{outcome.deleted_count}[/]")

        failed_style = "red" if outcome.failed_count else "green"
        summary.add_row("Failed:", f"[{failed_style}]{outcome.failed_count}[/]")
        summary.add_row(
            "Chunks:", f"{outcome.chunks_dispatched}/{outcome.chunks_total} sent"
        )
        if outcome.end_time:
            elapsed = (outcome.end_time - outcome.start_time).total_seconds()
            summary.add_row("Duration:", f"{elapsed:.1f}s")

        self.console.print(summary)

    def _print_failures_table(self, outcome: DeleteOutcome) -> None:
        table = Table(
            title=f"\nObjects not deleted ({outcome.failed_count})",
            title_style="bold red",
        )
        table.add_column("Key", style="cyan")
        table.add_column("Version", style="dim")
        table.add_column("Code", style="yellow")
        table.add_column("Error", style="dim", max_width=60)

        for failure in outcome.failures[:MAX_FAILURES_SHOWN]:
            table.add_row(
                escape(failure.identifier.key),
                escape(failure.identifier.version_id or "-"),
                failure.code or "-",
                escape(self._truncate(failure.message, 60)),
            )
        self.console.print(table)

        hidden = outcome.failed_count - MAX_FAILURES_SHOWN
        if hidden > 0:
            self.console.print(
                f"[dim]... and {hidden} more (use --output to save all failures)[/dim]"
            )

    @staticmethod
    def _truncate(text: str, max_length: int) -> str:
        """Truncate text to maximum length with ellipsis."""
        if len(text) <= max_length:
            return text
        return text[:max_length - 3] + "..."

    # =========================================================================
    # Public Methods: Messages
    # =========================================================================

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green bold]{escape(message)}[/green bold]")

    def print_error(self, message: str) -> None:
        """
        Print an error message.

        Example
        -------
        >>> reporter.print_error("Failed to connect to AWS")
        """
        self.console.print(f"\n[red bold]Error:[/red bold] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"\n[yellow bold]Warning:[/yellow bold] {escape(message)}")

    def print_saved(self, output_file: str) -> None:
        self.console.print(f"[dim]Results saved to: {escape(output_file)}[/dim]")

    def __repr__(self) -> str:
        """Return string representation."""
        return "CLIReporter()"
