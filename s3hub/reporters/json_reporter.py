"""
JSON Reporter Module
====================

Exports delete outcomes to JSON for programmatic access.

Classes
-------
JSONReporter
    Main reporter class for JSON export.

Example
-------
>>> from s3hub.reporters import JSONReporter
>>>
>>> reporter = JSONReporter(output_path="delete-report.json")
>>> filepath = reporter.report(outcome)
>>>
>>> # Or get as string
>>> json_str = reporter.to_string(outcome)

Output Structure
----------------
A single bulk delete::

    {
      "metadata": {
        "bucket": "my-bucket",
        "region": "ap-northeast-1",
        "status": "partial_failure",
        "total": 10000,
        "deleted": 9000,
        "failed": 1000,
        "chunks_total": 10,
        "chunks_dispatched": 10,
        "start_time": "2024-01-15T10:30:00",
        "end_time": "2024-01-15T10:30:12"
      },
      "failures": [
        {"key": "logs/a.txt", "version_id": null, "code": "AccessDenied", "error": "..."}
      ]
    }

A list of outcomes produces ``{"outcomes": [...]}`` with one entry of the
shape above per outcome, and a bucket summary produces
``{"metadata": {...}, "buckets": [...]}``.

See Also
--------
CLIReporter : For terminal display.
CSVReporter : For a plain list of failed objects.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from s3hub.cleaners.bucket_cleaner import BucketDeleteSummary
from s3hub.core.models import DeleteOutcome

# Module logger
logger = logging.getLogger(__name__)

Reportable = Union[DeleteOutcome, List[DeleteOutcome], BucketDeleteSummary]


class JSONReporter:
    """
    Reporter for exporting delete results to JSON format.

    Parameters
    ----------
    output_path : str, optional
        Path for the output file. If not provided, generates a
        timestamped filename in the current directory.
    indent : int, default=2
        JSON indentation level. Set to None for compact output.

    Examples
    --------
    >>> reporter = JSONReporter(output_path="report.json")
    >>> filepath = reporter.report(outcome)

    Compact output (no indentation):

    >>> reporter = JSONReporter(indent=None)
    >>> json_str = reporter.to_string(outcome)
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        indent: Optional[int] = 2,
    ) -> None:
        """Initialize the JSON reporter with optional output path and indentation."""
        self.output_path = output_path
        self.indent = indent
        logger.debug(f"Initialized JSONReporter (output_path={output_path})")

    def _get_output_path(self) -> Path:
        if self.output_path:
            return Path(self.output_path)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return Path(f"s3hub_delete_{timestamp}.json")

    def report(self, result: Reportable) -> str:
        """
        Export a delete outcome or bucket summary to a JSON file.

        Returns
        -------
        str
            Path to the created JSON file.
        """
        output_path = self._get_output_path()
        data = self.to_dict(result)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=self.indent, default=str)

        logger.info(f"JSON export complete: {output_path}")
        return str(output_path)

    def to_string(self, result: Reportable) -> str:
        """Convert results to a JSON string without writing to file."""
        return json.dumps(self.to_dict(result), indent=self.indent, default=str)

    def to_dict(self, result: Reportable) -> Dict[str, Any]:
        """
        Convert results to a Python dictionary.

        Example
        -------
        >>> data = JSONReporter().to_dict(outcome)
        >>> print(data["metadata"]["deleted"])
        """
        if isinstance(result, BucketDeleteSummary):
            return self._build_summary_data(result)
        if isinstance(result, list):
            return {"outcomes": [self._build_outcome_data(o) for o in result]}
        return self._build_outcome_data(result)

    # =========================================================================
    # Private Methods: Data Building
    # =========================================================================

    @staticmethod
    def _build_outcome_data(outcome: DeleteOutcome) -> Dict[str, Any]:
        data = outcome.to_dict()
        failures = data.pop("failures")
        return {"metadata": data, "failures": failures}

    @staticmethod
    def _build_summary_data(summary: BucketDeleteSummary) -> Dict[str, Any]:
        data = summary.to_dict()
        buckets = data.pop("results")
        return {"metadata": data, "buckets": buckets}

    def __repr__(self) -> str:
        """Return string representation."""
        return f"JSONReporter(output_path={self.output_path!r}, indent={self.indent})"
