"""
Batch Orchestrator.

Runs map + generate over a collection of analyzer results keyed by form id
and folds the outcomes into one BatchResult.

ISOLATION RULES:
    - Every item gets a fresh CanonicalForm; nothing is shared between items
    - A failure of one item (mapping, generation or anything unexpected)
      is recorded against that item and processing continues
    - Statistics are merged only for successful items
    - Exactly one ProgressEvent is delivered per processed item
    - The batch succeeds when at least one item succeeded

Only InvalidBatchInput escapes run_batch / run_batch_parallel.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, List, Optional, Tuple

from cfm.aggregation import GenerationStatistics, collect_statistics
from cfm.backends.base import FormGenerator
from cfm.config import GenerationOptions
from cfm.exceptions import CfmError, GenerationError, InvalidBatchInput, UnexpectedError
from cfm.inspection import analyze_form
from cfm.mapper import map_to_canonical
from cfm.results import BatchResult, MessageCallback, ProgressCallback, ProgressEvent, RebuildResult, format_duration
from cfm.source import FormAnalysisResult

logger = logging.getLogger(__name__)


@dataclass
class ItemOutcome:
    """Everything one batch item contributes to the BatchResult."""
    form_id: str
    result: RebuildResult
    statistics: Optional[GenerationStatistics] = None
    warnings: List[str] = field(default_factory=list)


def _target_of(generator: FormGenerator) -> str:
    return getattr(generator, "target", type(generator).__name__)


def _validate(forms_by_id: Any, generator: Any) -> List[Tuple[str, FormAnalysisResult]]:
    if forms_by_id is None:
        raise InvalidBatchInput("Form collection is missing")
    if not isinstance(forms_by_id, Mapping):
        raise InvalidBatchInput(
            f"Form collection must be a mapping of form id to analysis, got {type(forms_by_id).__name__}"
        )
    if generator is None:
        raise InvalidBatchInput("Generator is missing")
    for form_id in forms_by_id:
        if not isinstance(form_id, str):
            raise InvalidBatchInput(f"Form ids must be strings, got {form_id!r}")
    return list(forms_by_id.items())


def process_form(form_id: str, analysis: Optional[FormAnalysisResult], generator: FormGenerator,
                 options: GenerationOptions, form_name: Optional[str] = None) -> ItemOutcome:
    """
    Map and generate a single form, containing every failure.

    Args:
        form_id: Key of the item in the batch
        analysis: Analyzer result for the form
        generator: Generator to run
        options: Generation options
        form_name: Overrides the mapped form name when given

    Returns:
        ItemOutcome whose result carries success or the failure message
    """
    target = _target_of(generator)
    warnings: List[str] = []

    try:
        form = map_to_canonical(analysis)
    except CfmError as e:
        return ItemOutcome(form_id, RebuildResult.failure(target, f"Failed to map form structure: {e}"))
    except Exception as e:
        logger.exception(f"Unexpected error while mapping {form_id}")
        error = UnexpectedError(str(e))
        return ItemOutcome(form_id, RebuildResult.failure(target, f"Unexpected error - {error}"))

    warnings.extend(form.source_warnings)
    warnings.extend(analyze_form(form).warnings)

    if form_name:
        form = replace(form, name=form_name)

    try:
        result = generator.generate(form, options)
        if result is None:
            raise GenerationError("Generator returned no result")
        if not isinstance(result, RebuildResult):
            raise GenerationError(f"Generator returned {type(result).__name__}, not a RebuildResult")
        if result.statistics is not None and not isinstance(result.statistics, GenerationStatistics):
            raise GenerationError(
                f"Generator returned {type(result.statistics).__name__} statistics, "
                f"not GenerationStatistics"
            )
    except CfmError as e:
        return ItemOutcome(
            form_id, RebuildResult.failure(target, f"Failed to generate form: {e}"), warnings=warnings
        )
    except Exception as e:
        logger.exception(f"Unexpected error while generating {form_id}")
        error = UnexpectedError(str(e))
        return ItemOutcome(
            form_id, RebuildResult.failure(target, f"Unexpected error - {error}"), warnings=warnings
        )

    if not result.success:
        if not result.error_message:
            result.error_message = "Generation failed"
        return ItemOutcome(form_id, result, warnings=warnings)

    statistics = result.statistics if result.statistics is not None else collect_statistics(form)
    return ItemOutcome(form_id, result, statistics=statistics, warnings=warnings)


class _BatchRecorder:
    """
    Folds item outcomes into a BatchResult.

    Only ever called from the thread that owns the batch, so statistics
    merging and progress delivery are serialized.
    """

    def __init__(self, total: int, target: str, progress: Optional[ProgressCallback],
                 on_message: Optional[MessageCallback]):
        self.result = BatchResult()
        self.total = total
        self.target = target
        self.progress = progress
        self.on_message = on_message
        self.completed = 0

    def message(self, text: str) -> None:
        self.result.messages.append(text)
        if self.on_message is not None:
            self.on_message(text)

    def start(self) -> None:
        logger.info(f"Starting {self.target} generation for {self.total} form(s)")
        self.message(f"Starting {self.target} generation for {self.total} form(s)...")

    def record(self, outcome: ItemOutcome) -> None:
        result = self.result
        # Merge first so a bad outcome leaves the BatchResult untouched
        statistics = result.statistics.merged(outcome.statistics) if outcome.result.success else None

        result.form_results[outcome.form_id] = outcome.result
        result.warnings.extend(f"{outcome.form_id}: {w}" for w in outcome.warnings)

        if statistics is not None:
            result.statistics = statistics
            logger.info(f"{outcome.form_id} converted successfully")
            self.message(f"  ✓ {outcome.form_id} converted successfully")
        else:
            result.errors.append(f"{outcome.form_id}: {outcome.result.error_message}")
            logger.warning(f"{outcome.form_id} failed: {outcome.result.error_message}")
            self.message(f"  ✗ {outcome.form_id} failed: {outcome.result.error_message}")

        self.completed += 1
        if self.progress is not None:
            self.progress(ProgressEvent(
                form_id=outcome.form_id,
                success=outcome.result.success,
                current_index=self.completed,
                total_count=self.total,
                percent_complete=self.completed / self.total * 100,
            ))

    def cancel(self) -> None:
        self.result.cancelled = True

    def finish(self) -> BatchResult:
        result = self.result
        result.end_time = datetime.now()
        result.success = result.successful_forms > 0

        if result.cancelled:
            skipped = self.total - self.completed
            result.warnings.append(f"Batch cancelled, {skipped} form(s) not processed")
            logger.warning(f"Batch cancelled with {skipped} form(s) not processed")

        self.message("")
        self.message("=== Generation Complete ===")
        self.message(f"Total Forms: {result.total_forms}")
        self.message(f"Successful: {result.successful_forms}")
        self.message(f"Failed: {result.failed_forms}")
        self.message(f"Duration: {format_duration(result.duration)}")

        logger.info(
            f"Generation complete: {result.successful_forms}/{self.total} succeeded, "
            f"{result.failed_forms} failed"
        )
        return result


def _is_cancelled(cancel: Any) -> bool:
    return cancel is not None and cancel.is_set()


def run_batch(forms_by_id, generator: FormGenerator, options: Optional[GenerationOptions] = None,
              progress: Optional[ProgressCallback] = None, on_message: Optional[MessageCallback] = None,
              cancel=None) -> BatchResult:
    """
    Process every form in forms_by_id, in mapping order.

    Args:
        forms_by_id: Mapping of form id to FormAnalysisResult
        generator: Generator invoked once per successfully mapped form
        options: Generation options (defaults when None)
        progress: Called with one ProgressEvent per processed form
        on_message: Called with each start/end status line
        cancel: Any object with is_set(), checked before each form starts

    Returns:
        BatchResult. success is True when at least one form succeeded.

    Raises:
        InvalidBatchInput: If forms_by_id is None or not a mapping, or the
            generator is missing
    """
    items = _validate(forms_by_id, generator)
    options = options or GenerationOptions()
    form_name = options.form_name if len(items) == 1 else None

    recorder = _BatchRecorder(len(items), _target_of(generator), progress, on_message)
    recorder.start()

    for form_id, analysis in items:
        if _is_cancelled(cancel):
            recorder.cancel()
            break
        recorder.record(process_form(form_id, analysis, generator, options, form_name))

    return recorder.finish()


def run_batch_parallel(forms_by_id, generator: FormGenerator, options: Optional[GenerationOptions] = None,
                       progress: Optional[ProgressCallback] = None,
                       on_message: Optional[MessageCallback] = None,
                       cancel=None, max_workers: int = 4) -> BatchResult:
    """
    Same contract as run_batch, with map + generate running on a thread pool.

    Progress events arrive in completion order; current_index counts
    completions. form_results is returned in mapping order, errors and
    warnings in completion order. The generator must tolerate concurrent
    generate() calls.
    """
    items = _validate(forms_by_id, generator)
    options = options or GenerationOptions()
    form_name = options.form_name if len(items) == 1 else None

    recorder = _BatchRecorder(len(items), _target_of(generator), progress, on_message)
    recorder.start()

    def work(form_id: str, analysis: FormAnalysisResult) -> Optional[ItemOutcome]:
        if _is_cancelled(cancel):
            return None
        return process_form(form_id, analysis, generator, options, form_name)

    if items:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(work, form_id, analysis) for form_id, analysis in items]
            for future in as_completed(futures):
                outcome = future.result()
                if outcome is None:
                    recorder.cancel()
                    continue
                recorder.record(outcome)

    by_id = recorder.result.form_results
    recorder.result.form_results = {form_id: by_id[form_id] for form_id, _ in items if form_id in by_id}
    return recorder.finish()
