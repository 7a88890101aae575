"""
CSV Reporter Module
===================

Exports the objects a bulk delete could not remove to CSV.

One row per failed identifier, so the file can be inspected in a
spreadsheet or fed back into a later ``s3hub rm``.

Classes
-------
CSVReporter
    Main reporter class for CSV export.
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from s3hub.core.models import DeleteOutcome

# Module logger
logger = logging.getLogger(__name__)


class CSVReporter:
    """
    Reporter for exporting failed objects to CSV format.

    Parameters
    ----------
    output_path : str, optional
        Path for the output file. If not provided, generates a
        timestamped filename in the current directory.
    include_metadata : bool, default=True
        Write one ``#`` comment line per outcome (bucket, region, status,
        counts) before the header row.

    Examples
    --------
    >>> reporter = CSVReporter(output_path="failures.csv")
    >>> filepath = reporter.report(outcome)
    """

    COLUMNS = ["Bucket", "Key", "Version ID", "Error Code", "Error"]

    def __init__(
        self,
        output_path: Optional[str] = None,
        include_metadata: bool = True,
    ) -> None:
        """Initialize the CSV reporter with an optional output path."""
        self.output_path = output_path
        self.include_metadata = include_metadata
        logger.debug(f"Initialized CSVReporter (output_path={output_path})")

    def _get_output_path(self, bucket: str) -> Path:
        if self.output_path:
            return Path(self.output_path)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return Path(f"{bucket}_failures_{timestamp}.csv")

    def report(self, outcomes: Union[DeleteOutcome, List[DeleteOutcome]]) -> str:
        """
        Export the failed identifiers of one or more outcomes to CSV.

        Returns
        -------
        str
            Path to the created CSV file.
        """
        if isinstance(outcomes, DeleteOutcome):
            outcomes = [outcomes]
        output_path = self._get_output_path(outcomes[0].bucket if outcomes else "s3hub")
        failed = sum(o.failed_count for o in outcomes)

        logger.info(f"Exporting {failed} failures to {output_path}")

        with open(output_path, "w", newline="", encoding="utf-8") as csvfile:
            if self.include_metadata:
                for outcome in outcomes:
                    csvfile.write(
                        f"# {outcome.bucket} ({outcome.region or 'unknown'}): "
                        f"{outcome.status.value}, deleted {outcome.deleted_count} "
                        f"of {outcome.total}\n"
                    )

            writer = csv.writer(csvfile, quoting=csv.QUOTE_MINIMAL)
            writer.writerow(self.COLUMNS)
            for outcome in outcomes:
                for failure in outcome.failures:
                    writer.writerow([
                        outcome.bucket,
                        failure.identifier.key,
                        failure.identifier.version_id or "",
                        failure.code or "",
                        failure.message,
                    ])

        logger.info(f"CSV export complete: {output_path}")
        return str(output_path)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"CSVReporter(output_path={self.output_path!r})"
