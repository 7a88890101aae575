"""
s3hub CLI - AWS S3 Management Tools

Main entry point for the command-line interface.
"""

import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import click
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from . import __version__
from .cleaners.bucket_cleaner import BucketCleaner
from .cleaners.bulk_deleter import BulkObjectDeleter
from .core.aws_client import AWSClient
from .core.config import LOG_LEVELS, Config, load_config
from .core.exceptions import (
    BulkDeleteError,
    DeleteCancelledError,
    S3HubError,
    ValidationError,
)
from .core.logging import setup_logging
from .core.models import (
    MAX_DELETE_OBJECTS_RETRY_COUNT,
    Bucket,
    DeleteOutcome,
    ObjectIdentifier,
    ObjectIdentifierSet,
    Region,
    S3Address,
)
from .core.retry import RetryPolicy
from .core.validation import validate_region
from .reporters.cli_reporter import CLIReporter
from .reporters.csv_reporter import CSVReporter
from .reporters.json_reporter import JSONReporter
from .stores.s3_store import S3ObjectStore


console = Console()

EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def aws_options(func):
    """Add the connection and configuration options shared by every command."""
    options = [
        click.option(
            "--profile",
            "-p",
            default=None,
            help="AWS profile name from ~/.aws/credentials",
        ),
        click.option(
            "--region",
            default=None,
            help="Default AWS region (bucket regions are detected automatically)",
        ),
        click.option(
            "--endpoint-url",
            default=None,
            help="Custom S3 endpoint, e.g. http://localhost:4566 for localstack",
        ),
        click.option(
            "--config",
            "-c",
            "config_path",
            type=click.Path(dir_okay=False),
            default=None,
            help="YAML configuration file",
        ),
        click.option(
            "--log-level",
            type=click.Choice(LOG_LEVELS, case_sensitive=False),
            default=None,
            help="Log level (default: INFO)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_settings(config_path: Optional[str], **overrides) -> Config:
    """Read the config file, apply command line overrides and set up logging."""
    try:
        settings = load_config(config_path).merge(**overrides)
    except S3HubError as e:
        CLIReporter(console).print_error(str(e))
        sys.exit(EXIT_FAILURE)
    setup_logging(level=settings.log_level, log_file=settings.log_file)
    return settings


def _build_client(settings: Config) -> AWSClient:
    return AWSClient(
        region=settings.region or Region.US_EAST_1.value,
        profile=settings.profile,
        endpoint_url=settings.endpoint_url,
    )


def _build_store(settings: Config) -> S3ObjectStore:
    return S3ObjectStore(_build_client(settings))


def _build_deleter(store: S3ObjectStore, settings: Config) -> BulkObjectDeleter:
    policy = RetryPolicy(
        max_attempts=settings.max_attempts,
        delay_ceiling_sec=settings.retry_delay_sec,
    )
    return BulkObjectDeleter(
        store,
        retry_policy=policy,
        max_workers=settings.max_workers,
        batch_size=settings.batch_size,
    )


def _run_cancellable(func: Callable[[threading.Event], DeleteOutcome]) -> DeleteOutcome:
    """
    Run ``func`` on a background thread and turn Ctrl+C into cancellation.

    The first Ctrl+C sets the cancel event and waits for in-flight chunks,
    so the outcome reflects what was actually deleted.
    """
    cancel_event = threading.Event()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="s3hub-main") as runner:
        future = runner.submit(func, cancel_event)
        try:
            return future.result()
        except KeyboardInterrupt:
            console.print(
                "\n[yellow]Cancelling: waiting for in-flight requests to finish...[/yellow]"
            )
            cancel_event.set()
            return future.result()


@click.group()
@click.version_option(version=__version__, prog_name="s3hub")
def cli():
    """
    s3hub: AWS S3 Management Tools

    Delete large numbers of objects, object versions and whole buckets
    quickly and safely, list buckets and objects, and create buckets.
    """
    pass


# =============================================================================
# rm
# =============================================================================


@dataclass
class _Removal:
    """Everything to delete from one bucket."""

    bucket: Bucket
    everything: bool = False
    prefixes: List[str] = field(default_factory=list)
    keys: ObjectIdentifierSet = field(default_factory=ObjectIdentifierSet)


def _plan_removal(
    targets: List[str],
    recursive: bool,
    delete_bucket: bool,
) -> List[_Removal]:
    """
    Parse and validate every target before anything is deleted.

    Raises
    ------
    ValidationError
        If a bucket name is invalid.
    click.UsageError
        If a target does not fit the chosen flags.
    """
    plan: Dict[str, _Removal] = {}
    for target in targets:
        address = S3Address.parse(target)
        address.bucket.validate()
        removal = plan.setdefault(address.bucket.name, _Removal(address.bucket))

        if delete_bucket:
            if address.has_key and not address.is_all():
                raise click.UsageError(
                    f"--delete-bucket takes buckets, not keys: {target}"
                )
            removal.everything = True
        elif address.is_all() or (recursive and not address.has_key):
            removal.everything = True
        elif recursive:
            removal.prefixes.append(address.key)
        elif address.has_key:
            removal.keys.add(ObjectIdentifier(address.key))
        else:
            raise click.UsageError(
                f"{target} is a bucket: use --recursive (or s3://{address.bucket}/*) "
                f"to delete its objects, or --delete-bucket to delete it"
            )
    return list(plan.values())


def _describe(removal: _Removal, delete_bucket: bool) -> str:
    if delete_bucket:
        return f"bucket {removal.bucket.with_protocol()} and all of its contents"
    if removal.everything:
        return f"all objects in {removal.bucket.with_protocol()}"
    parts = [f"{removal.bucket.with_protocol()}/{p}*" for p in removal.prefixes]
    if removal.keys:
        parts.append(f"{len(removal.keys)} key(s) in {removal.bucket.with_protocol()}")
    return ", ".join(parts)


@cli.command("rm")
@click.argument("targets", nargs=-1, required=True)
@click.option(
    "--recursive",
    "-r",
    is_flag=True,
    help="Delete every object in the bucket, or under the given key prefix",
)
@click.option(
    "--versions",
    is_flag=True,
    help="Delete every object version and delete marker, not just current objects",
)
@click.option(
    "--delete-bucket",
    is_flag=True,
    help="Empty the bucket (all versions) and then delete the bucket itself",
)
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum parallel DeleteObjects requests (default: 5)",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(1, MAX_DELETE_OBJECTS_RETRY_COUNT),
    default=None,
    help="Attempts per chunk when S3 throttles, 1-6 (default: 3)",
)
@click.option(
    "--retry-delay",
    type=click.IntRange(min=1),
    default=None,
    help="Upper bound in seconds of the random delay between attempts (default: 5)",
)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Preview what would be deleted without actually deleting",
)
@click.option(
    "--output",
    "-o",
    default=None,
    help="Save the outcome to a file (.json for the full report, .csv for failed objects)",
)
@aws_options
def remove(
    targets: List[str],
    recursive: bool,
    versions: bool,
    delete_bucket: bool,
    max_workers: Optional[int],
    max_attempts: Optional[int],
    retry_delay: Optional[int],
    yes: bool,
    dry_run: bool,
    output: Optional[str],
    profile: Optional[str],
    region: Optional[str],
    endpoint_url: Optional[str],
    config_path: Optional[str],
    log_level: Optional[str],
):
    """
    Delete objects, object versions or buckets.

    TARGET is BUCKET, s3://BUCKET, s3://BUCKET/KEY or s3://BUCKET/*.

    Examples:

        # Delete one object
        s3hub rm s3://my-bucket/logs/app.log

        # Delete every object (current versions only)
        s3hub rm s3://my-bucket/*

        # Delete everything under a prefix, including old versions
        s3hub rm -r --versions s3://my-bucket/logs/

        # Delete a bucket and everything in it
        s3hub rm --delete-bucket my-bucket

        # Preview without deleting
        s3hub rm --dry-run -r my-bucket
    """
    settings = _load_settings(
        config_path,
        profile=profile,
        region=region,
        endpoint_url=endpoint_url,
        log_level=log_level,
        max_workers=max_workers,
        max_attempts=max_attempts,
        retry_delay_sec=retry_delay,
    )
    reporter = CLIReporter(console)

    try:
        plan = _plan_removal(list(targets), recursive, delete_bucket)
    except ValidationError as e:
        reporter.print_error(str(e))
        sys.exit(EXIT_FAILURE)

    if dry_run:
        console.print(
            Panel(
                "[yellow bold]DRY-RUN MODE[/yellow bold]\n"
                "Nothing will actually be deleted.",
                border_style="yellow",
            )
        )
    elif not yes:
        for removal in plan:
            console.print(f"  [red]•[/red] {_describe(removal, delete_bucket)}")
        if not Confirm.ask("[yellow]Delete the above?[/yellow]", default=False, console=console):
            console.print("\n[yellow]Deletion cancelled by user.[/yellow]")
            return

    store = _build_store(settings)
    deleter = _build_deleter(store, settings)
    cleaner = BucketCleaner(store, deleter)
    versions = versions or delete_bucket

    outcomes: List[DeleteOutcome] = []
    failed = False
    cancelled = False

    for removal in plan:
        try:
            if dry_run:
                _preview(removal, deleter, versions, reporter)
            else:
                outcomes.extend(
                    _remove(removal, deleter, cleaner, versions, delete_bucket, reporter)
                )
        except BulkDeleteError as e:
            outcomes.append(e.outcome)
            reporter.report_outcome(e.outcome)
            failed = True
        except DeleteCancelledError as e:
            outcomes.append(e.outcome)
            reporter.report_outcome(e.outcome)
            cancelled = True
            break
        except KeyboardInterrupt:
            cancelled = True
            break
        except S3HubError as e:
            reporter.print_error(str(e))
            failed = True
        except (ClientError, BotoCoreError) as e:
            reporter.print_error(f"AWS error for {removal.bucket}: {e}")
            failed = True

    if output and outcomes:
        _save_outcomes(outcomes, output, reporter)

    if cancelled:
        console.print("\n[yellow]Deletion cancelled by user.[/yellow]")
        sys.exit(EXIT_CANCELLED)
    if failed:
        sys.exit(EXIT_FAILURE)


def _preview(
    removal: _Removal,
    deleter: BulkObjectDeleter,
    versions: bool,
    reporter: CLIReporter,
) -> None:
    objects = ObjectIdentifierSet(removal.keys)
    if removal.everything:
        objects.extend(deleter.list_inventory(removal.bucket, versions=versions))
    else:
        for prefix in removal.prefixes:
            objects.extend(
                deleter.list_inventory(removal.bucket, prefix=prefix, versions=versions)
            )
    reporter.print_dry_run(removal.bucket.name, objects.dedupe())


def _remove(
    removal: _Removal,
    deleter: BulkObjectDeleter,
    cleaner: BucketCleaner,
    versions: bool,
    delete_bucket: bool,
    reporter: CLIReporter,
) -> List[DeleteOutcome]:
    bucket = removal.bucket
    outcomes = []

    def run(operation):
        def task(cancel_event: threading.Event) -> DeleteOutcome:
            with reporter.progress_bar(bucket.name) as bar:
                return operation(cancel_event, bar.update)
        outcome = _run_cancellable(task)
        reporter.report_outcome(outcome)
        outcomes.append(outcome)

    if delete_bucket:
        run(lambda cancel, progress: cleaner.delete_bucket_and_contents(
            bucket, versions=True, cancel_event=cancel, progress_callback=progress,
        ))
        reporter.print_success(f"Deleted bucket {bucket}")
        return outcomes

    if removal.everything:
        run(lambda cancel, progress: deleter.delete_all(
            bucket, versions=versions, cancel_event=cancel, progress_callback=progress,
        ))
        return outcomes

    for prefix in removal.prefixes:
        run(lambda cancel, progress, prefix=prefix: deleter.delete_all(
            bucket, prefix=prefix, versions=versions,
            cancel_event=cancel, progress_callback=progress,
        ))
    if removal.keys:
        run(lambda cancel, progress: deleter.delete_set(
            bucket, removal.keys, cancel_event=cancel, progress_callback=progress,
        ))
    return outcomes


def _save_outcomes(
    outcomes: List[DeleteOutcome],
    output: str,
    reporter: CLIReporter,
) -> None:
    if output.endswith(".csv"):
        output_file = CSVReporter(output_path=output).report(outcomes)
    else:
        result = outcomes[0] if len(outcomes) == 1 else outcomes
        output_file = JSONReporter(output_path=output).report(result)
    reporter.print_saved(output_file)


# =============================================================================
# ls / mb
# =============================================================================


@cli.command("ls")
@click.argument("target", required=False)
@click.option(
    "--versions",
    is_flag=True,
    help="List every object version and delete marker",
)
@aws_options
def list_command(
    target: Optional[str],
    versions: bool,
    profile: Optional[str],
    region: Optional[str],
    endpoint_url: Optional[str],
    config_path: Optional[str],
    log_level: Optional[str],
):
    """
    List buckets, or the objects in a bucket.

    Examples:

        # List buckets with their regions
        s3hub ls

        # List objects under a prefix
        s3hub ls s3://my-bucket/logs/
    """
    settings = _load_settings(
        config_path,
        profile=profile,
        region=region,
        endpoint_url=endpoint_url,
        log_level=log_level,
    )
    reporter = CLIReporter(console)

    try:
        store = _build_store(settings)
        if target is None:
            reporter.print_buckets(store.list_buckets(with_region=True))
            return

        address = S3Address.parse(target)
        address.bucket.validate()
        prefix = None if address.is_all() else address.key
        deleter = _build_deleter(store, settings)
        objects = deleter.list_inventory(address.bucket, prefix=prefix, versions=versions)
        reporter.print_objects(address.bucket.name, objects)

    except S3HubError as e:
        reporter.print_error(str(e))
        sys.exit(EXIT_FAILURE)
    except (ClientError, BotoCoreError) as e:
        reporter.print_error(f"AWS error: {e}")
        sys.exit(EXIT_FAILURE)


@cli.command("mb")
@click.argument("bucket")
@aws_options
def make_bucket(
    bucket: str,
    profile: Optional[str],
    region: Optional[str],
    endpoint_url: Optional[str],
    config_path: Optional[str],
    log_level: Optional[str],
):
    """
    Create a bucket.

    Examples:

        s3hub mb my-new-bucket --region ap-northeast-1
    """
    settings = _load_settings(
        config_path,
        profile=profile,
        region=region,
        endpoint_url=endpoint_url,
        log_level=log_level,
    )
    reporter = CLIReporter(console)

    try:
        target = S3Address.parse(bucket).bucket
        target.validate()
        bucket_region = validate_region(settings.region or Region.US_EAST_1.value)
        _build_store(settings).create_bucket(target, bucket_region)
        reporter.print_success(f"Created bucket {target.with_protocol()} in {bucket_region}")
    except S3HubError as e:
        reporter.print_error(str(e))
        sys.exit(EXIT_FAILURE)
    except (ClientError, BotoCoreError) as e:
        reporter.print_error(f"AWS error: {e}")
        sys.exit(EXIT_FAILURE)


# =============================================================================
# regions / validate
# =============================================================================


@cli.command("regions")
def list_regions():
    """List the AWS regions s3hub supports."""
    console.print(f"\n[bold]Supported AWS Regions ({len(Region)} total):[/bold]\n")
    CLIReporter(console).print_regions(Region)
    console.print()


@cli.command("validate")
@aws_options
def validate_credentials(
    profile: Optional[str],
    region: Optional[str],
    endpoint_url: Optional[str],
    config_path: Optional[str],
    log_level: Optional[str],
):
    """Validate AWS credentials and show account info."""
    settings = _load_settings(
        config_path,
        profile=profile,
        region=region,
        endpoint_url=endpoint_url,
        log_level=log_level,
    )
    try:
        client = _build_client(settings)
        client.validate_credentials()
        account_id = client.get_account_id()

        console.print("\n[green bold]AWS credentials are valid![/green bold]")
        console.print(f"\n  Account ID: {account_id}")
        console.print(f"  Region: {client.region}")
        if settings.profile:
            console.print(f"  Profile: {settings.profile}")
        console.print()

    except S3HubError as e:
        console.print(f"\n[red bold]Validation Failed:[/red bold] {str(e)}")
        sys.exit(EXIT_FAILURE)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
