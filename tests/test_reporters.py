"""
Tests for the Reporter modules.
"""

import csv
import json
import os
import tempfile
from datetime import datetime
from io import StringIO

import pytest
from rich.console import Console

from conftest import client_error
from s3hub.cleaners.bucket_cleaner import (
    BucketDeleteResult,
    BucketDeleteStatus,
    BucketDeleteSummary,
)
from s3hub.core.models import (
    ChunkFailure,
    DeleteOutcome,
    DeleteProgress,
    ObjectIdentifier,
    ObjectIdentifierSet,
    OutcomeStatus,
    Region,
)
from s3hub.reporters.cli_reporter import MAX_FAILURES_SHOWN, CLIReporter
from s3hub.reporters.csv_reporter import CSVReporter
from s3hub.reporters.json_reporter import JSONReporter


@pytest.fixture
def partial_outcome():
    """Create a DeleteOutcome with two failed objects."""
    outcome = DeleteOutcome(
        bucket="my-bucket",
        region="ap-northeast-1",
        total=10,
        deleted_count=8,
        chunks_total=1,
        chunks_dispatched=1,
        start_time=datetime(2024, 1, 15, 10, 30, 0),
    )
    outcome.failures = [
        ChunkFailure(
            ObjectIdentifier("logs/[2024]/a.txt"),
            client_error("AccessDenied", 403),
            code="AccessDenied",
        ),
        ChunkFailure(
            ObjectIdentifier("logs/b.txt", version_id="v1"),
            client_error("AccessDenied", 403),
            code="AccessDenied",
        ),
    ]
    outcome.complete()
    return outcome


@pytest.fixture
def success_outcome():
    """Create a DeleteOutcome without failures."""
    outcome = DeleteOutcome(bucket="other-bucket", region="us-east-1", total=5, deleted_count=5)
    outcome.complete()
    return outcome


@pytest.fixture
def recording_console():
    """Console that records output instead of writing to a terminal."""
    return Console(file=StringIO(), record=True, width=120)


class TestCSVReporter:
    """Tests for CSVReporter class."""

    def test_export_failures(self, partial_outcome):
        """Test exporting failed objects to CSV."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".csv", delete=False) as f:
            output_path = f.name

        try:
            reporter = CSVReporter(output_path=output_path)
            result_path = reporter.report(partial_outcome)

            assert result_path == output_path

            with open(output_path, "r") as f:
                lines = f.read().splitlines()

            assert lines[0].startswith("# my-bucket (ap-northeast-1): partial_failure")
            rows = list(csv.reader(lines[1:]))
            assert rows[0] == CSVReporter.COLUMNS
            assert rows[1][:4] == ["my-bucket", "logs/[2024]/a.txt", "", "AccessDenied"]
            assert rows[2][:4] == ["my-bucket", "logs/b.txt", "v1", "AccessDenied"]
        finally:
            os.unlink(output_path)

    def test_multiple_outcomes(self, partial_outcome, success_outcome, tmp_path):
        """Test that every outcome gets a metadata line."""
        output_path = str(tmp_path / "failures.csv")

        CSVReporter(output_path=output_path).report([partial_outcome, success_outcome])

        with open(output_path, "r") as f:
            lines = f.read().splitlines()
        assert lines[1].startswith("# other-bucket (us-east-1): success")
        assert len(lines) == 2 + 1 + 2

    def test_without_metadata(self, partial_outcome, tmp_path):
        """Test that metadata lines can be turned off."""
        output_path = str(tmp_path / "failures.csv")

        CSVReporter(output_path=output_path, include_metadata=False).report(partial_outcome)

        with open(output_path, "r") as f:
            assert f.readline().strip() == ",".join(CSVReporter.COLUMNS)

    def test_auto_generated_filename(self, partial_outcome, tmp_path, monkeypatch):
        """Test that filename is auto-generated when not specified."""
        monkeypatch.chdir(tmp_path)

        result_path = CSVReporter().report(partial_outcome)

        assert result_path.endswith(".csv")
        assert result_path.startswith("my-bucket_failures_")
        assert os.path.exists(result_path)


class TestJSONReporter:
    """Tests for JSONReporter class."""

    def test_export_outcome(self, partial_outcome):
        """Test exporting a delete outcome to JSON."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            output_path = f.name

        try:
            reporter = JSONReporter(output_path=output_path)
            result_path = reporter.report(partial_outcome)

            assert result_path == output_path

            with open(output_path, "r") as f:
                data = json.load(f)

            assert data["metadata"]["bucket"] == "my-bucket"
            assert data["metadata"]["status"] == "partial_failure"
            assert data["metadata"]["deleted"] == 8
            assert data["metadata"]["failed"] == 2
            assert len(data["failures"]) == 2
            assert data["failures"][1]["version_id"] == "v1"
        finally:
            os.unlink(output_path)

    def test_list_of_outcomes(self, partial_outcome, success_outcome):
        """Test exporting several outcomes."""
        data = JSONReporter().to_dict([partial_outcome, success_outcome])

        assert [o["metadata"]["bucket"] for o in data["outcomes"]] == [
            "my-bucket",
            "other-bucket",
        ]

    def test_bucket_summary(self, success_outcome):
        """Test exporting a bucket delete summary."""
        summary = BucketDeleteSummary()
        summary.add_result(
            BucketDeleteResult(
                bucket="other-bucket",
                status=BucketDeleteStatus.SUCCESS,
                outcome=success_outcome,
            )
        )
        summary.complete()

        data = JSONReporter().to_dict(summary)

        assert data["metadata"]["deleted"] == 1
        assert data["buckets"][0]["outcome"]["deleted"] == 5

    def test_to_string(self, partial_outcome):
        """Test converting result to JSON string."""
        json_str = JSONReporter(indent=None).to_string(partial_outcome)

        data = json.loads(json_str)
        assert "metadata" in data
        assert "failures" in data
        assert "\n" not in json_str


class TestCLIReporter:
    """Tests for CLIReporter class."""

    def test_reporter_initialization(self):
        """Test CLI reporter initialization."""
        reporter = CLIReporter()
        assert reporter.console is not None

    def test_truncate_function(self):
        """Test text truncation."""
        reporter = CLIReporter()

        # Short text should not be truncated
        assert reporter._truncate("short", 10) == "short"

        # Long text should be truncated with ellipsis
        long_text = "This is a very long error message that should be truncated"
        truncated = reporter._truncate(long_text, 20)
        assert len(truncated) == 20
        assert truncated.endswith("...")

    def test_report_outcome(self, partial_outcome, recording_console):
        """Test the outcome summary and failures table."""
        CLIReporter(recording_console).report_outcome(partial_outcome)

        output = recording_console.export_text()
        assert "my-bucket" in output
        assert "partial_failure" in output
        assert "logs/[2024]/a.txt" in output
        assert "AccessDenied" in output

    def test_report_success(self, success_outcome, recording_console):
        """Test that no failures table is printed on success."""
        CLIReporter(recording_console).report_outcome(success_outcome)

        output = recording_console.export_text()
        assert "success" in output
        assert "Objects not deleted" not in output

    def test_failures_table_is_cut_off(self, recording_console):
        """Test that long failure lists are truncated."""
        outcome = DeleteOutcome(bucket="my-bucket", total=30)
        outcome.failures = [
            ChunkFailure(ObjectIdentifier(f"k{i}"), RuntimeError("boom"))
            for i in range(MAX_FAILURES_SHOWN + 10)
        ]
        outcome.complete()

        CLIReporter(recording_console).report_outcome(outcome)

        assert "and 10 more" in recording_console.export_text()

    def test_bucket_summary(self, recording_console):
        """Test the bucket deletion table."""
        summary = BucketDeleteSummary()
        summary.add_result(
            BucketDeleteResult(bucket="bucket-a", status=BucketDeleteStatus.FAILED,
                               error_message="failed to delete 3 of 10 objects")
        )
        summary.add_result(BucketDeleteResult(bucket="bucket-b", status=BucketDeleteStatus.SUCCESS))

        CLIReporter(recording_console).report_bucket_summary(summary)

        output = recording_console.export_text()
        assert "bucket-a" in output
        assert "bucket-b" in output
        assert "Deleted: 1" in output

    def test_print_dry_run(self, recording_console):
        """Test the dry-run listing."""
        objects = ObjectIdentifierSet.from_keys([f"k{i}" for i in range(25)])

        CLIReporter(recording_console).print_dry_run("my-bucket", objects)

        output = recording_console.export_text()
        assert "would delete 25 objects" in output
        assert "and 5 more" in output

    def test_print_objects(self, recording_console):
        """Test listing objects with versions."""
        objects = ObjectIdentifierSet(
            [ObjectIdentifier("a.txt"), ObjectIdentifier("b.txt", version_id="v9")]
        )

        CLIReporter(recording_console).print_objects("my-bucket", objects)

        output = recording_console.export_text()
        assert "a.txt" in output
        assert "v9" in output
        assert "2 objects" in output

    def test_print_regions(self, recording_console):
        """Test the region listing."""
        CLIReporter(recording_console).print_regions(Region)

        lines = recording_console.export_text().split()
        assert lines == [r.value for r in Region]

    def test_progress_bar(self, recording_console):
        """Test that progress events can be fed to the bar."""
        reporter = CLIReporter(recording_console)

        with reporter.progress_bar("my-bucket") as bar:
            bar.update(DeleteProgress("my-bucket", total=20, processed=10,
                                      deleted=10, failed=0, chunk_index=0))
            bar.update(DeleteProgress("my-bucket", total=20, processed=20,
                                      deleted=19, failed=1, chunk_index=1))

    def test_messages_escape_markup(self, recording_console):
        """Test that user text is printed verbatim."""
        CLIReporter(recording_console).print_error("bad key [red]x[/red]")

        assert "bad key [red]x[/red]" in recording_console.export_text()

    def test_status_of_cancelled_outcome(self, recording_console):
        """Test that a cancelled outcome is reported."""
        outcome = DeleteOutcome(bucket="my-bucket", total=50, deleted_count=10)
        outcome.complete(OutcomeStatus.CANCELLED)

        CLIReporter(recording_console).report_outcome(outcome)

        assert "cancelled" in recording_console.export_text()
