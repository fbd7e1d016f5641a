"""
Generation and batch results.

RebuildResult is what one generator call produces for one form.
BatchResult collects every RebuildResult of a batch, the batch-level
messages and the merged GenerationStatistics.
ProgressEvent is delivered once per batch item.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from cfm.aggregation import GenerationStatistics


@dataclass
class RebuildResult:
    """
    Output of one generator call.

    Properties:
        success: Whether generation succeeded
        error_message: Empty on success
        target: Identifier of the generator that produced it
        output_data: Primary output, encoded
        output_path: Suggested file name for the primary output
        artifacts: Secondary outputs keyed by artifact name
        statistics: This form's contribution to the batch statistics
    """

    success: bool = False
    error_message: str = ""
    target: str = ""
    output_data: bytes = b""
    output_path: str = ""
    artifacts: Dict[str, str] = field(default_factory=dict)
    statistics: Optional[GenerationStatistics] = None

    @classmethod
    def failure(cls, target: str, message: str) -> RebuildResult:
        return cls(success=False, error_message=message, target=target)


@dataclass(frozen=True)
class ProgressEvent:
    """Per-item progress notification."""

    form_id: str
    success: bool
    current_index: int
    total_count: int
    percent_complete: float


ProgressCallback = Callable[[ProgressEvent], None]
MessageCallback = Callable[[str], None]


def format_duration(duration: Optional[timedelta]) -> str:
    if duration is None:
        return "In progress"
    minutes, seconds = divmod(int(duration.total_seconds()), 60)
    return f"{minutes:02d}:{seconds:02d}"


@dataclass
class BatchResult:
    """
    Aggregate outcome of one batch invocation.

    Built incrementally by the orchestrator; treat it as read-only once
    returned.

    SUCCESS RULE:
        success is True when at least one form succeeded, however many
        failed. This partial-success policy is deliberate.
    """

    form_results: Dict[str, RebuildResult] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    success: bool = False
    cancelled: bool = False
    statistics: GenerationStatistics = field(default_factory=GenerationStatistics)

    @property
    def total_forms(self) -> int:
        return len(self.form_results)

    @property
    def successful_forms(self) -> int:
        return sum(1 for r in self.form_results.values() if r.success)

    @property
    def failed_forms(self) -> int:
        return sum(1 for r in self.form_results.values() if not r.success)

    @property
    def duration(self) -> Optional[timedelta]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def summary(self) -> str:
        """
        Human-readable summary of the batch.

        Counts, duration, totals and every error and warning, one per line.
        """
        lines = [
            "=== Form Generation Summary ===",
            f"Total Forms: {self.total_forms}",
            f"Successful: {self.successful_forms}",
            f"Failed: {self.failed_forms}",
            f"Duration: {format_duration(self.duration)}",
        ]
        if self.cancelled:
            lines.append("Status: Cancelled")
        lines.append("")

        lines.append(f"Total Controls: {self.statistics.total_controls}")
        lines.append(f"Total Variables: {self.statistics.total_variables}")
        lines.append(f"Total Pages: {self.statistics.total_pages}")
        lines.append("")

        if self.errors:
            lines.append(f"Errors ({len(self.errors)}):")
            lines.extend(f"  - {e}" for e in self.errors)
            lines.append("")

        if self.warnings:
            lines.append(f"Warnings ({len(self.warnings)}):")
            lines.extend(f"  - {w}" for w in self.warnings)
            lines.append("")

        return "\n".join(lines)
