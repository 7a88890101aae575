"""
Report Generators
=================

This module provides output formatters for delete results and listings.

Available Reporters
-------------------
CLIReporter
    Rich terminal output with progress bars and summary tables.
CSVReporter
    CSV export of the objects a delete could not remove.
JSONReporter
    JSON export of a full delete outcome or bucket summary.

Example
-------
>>> from s3hub.reporters import CLIReporter, JSONReporter
>>>
>>> # Display in terminal
>>> CLIReporter().report_outcome(outcome)
>>>
>>> # Save as JSON
>>> JSONReporter(output_path="report.json").report(outcome)

See Also
--------
s3hub.core.models.DeleteOutcome : Input data structure.
"""

from s3hub.reporters.cli_reporter import CLIReporter, DeleteProgressBar
from s3hub.reporters.csv_reporter import CSVReporter
from s3hub.reporters.json_reporter import JSONReporter

__all__ = [
    "CLIReporter",
    "CSVReporter",
    "DeleteProgressBar",
    "JSONReporter",
]
