"""Export/import pipeline options, outcomes, and cancellation.

The pipelines themselves live in ``db_voyager.pipeline.export`` and
``db_voyager.pipeline.importer`` (also re-exported from ``db_voyager``).

Usage:
    from db_voyager.pipeline import Cancellation, ExportOptions, PipelineOutcome
"""

from db_voyager.pipeline.cancellation import Cancellation
from db_voyager.pipeline.models import (
    ExportOptions,
    ExportState,
    ImportOptions,
    ImportState,
    PipelineError,
    PipelineOutcome,
)

__all__ = [
    "Cancellation",
    "ExportOptions",
    "ExportState",
    "ImportOptions",
    "ImportState",
    "PipelineError",
    "PipelineOutcome",
]
