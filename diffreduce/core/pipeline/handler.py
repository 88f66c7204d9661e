import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from diffreduce.core.chunkers.diff import DiffSplitter
from diffreduce.core.models.costs import relative_cost
from diffreduce.core.models.selector import ModelSelector
from diffreduce.core.pipeline.merger import SummaryMerger
from diffreduce.core.pipeline.processor import ChunkProcessor
from diffreduce.core.ports.clock import Clock
from diffreduce.core.ports.feedback import FeedbackSink
from diffreduce.core.ports.logger import Logger
from diffreduce.core.ports.noise_filter import NoiseFilter
from diffreduce.core.ports.summary_generator import SummaryGenerator
from diffreduce.core.schema.change import ChangeStatus, FileChange
from diffreduce.core.schema.chunk import ProcessConfig
from diffreduce.core.schema.generation import GenerationOptions, ModelSelection
from diffreduce.core.tokens import TokenEstimator

TRUNCATION_NOTICE = '\n\n[Note: diff content was truncated]'
TRUNCATION_KEEP_RATIO = 0.9


def changes_to_diff(changes: Sequence[FileChange]) -> str:
    parts = []
    for change in changes:
        status = 'new file' if change.status is ChangeStatus.ADDED else change.status.label.lower()
        parts.append(f'diff --git a/{change.path} b/{change.path}\n{status}\n{change.diff}')
    return '\n'.join(parts)


def truncate_to_fit(text: str, estimator: TokenEstimator) -> Tuple[str, bool]:
    """Drops the trailing tenth of the lines until the text fits."""
    lines = text.split('\n')
    truncated = False
    while lines and estimator.needs_split('\n'.join(lines)):
        lines = lines[: math.floor(len(lines) * TRUNCATION_KEEP_RATIO)]
        truncated = True
    return '\n'.join(lines), truncated


def estimate_savings(map_model: str, chunk_count: int) -> int:
    """Percent saved against running every call on the primary model.

    A run makes ``chunk_count`` map calls plus one reduce call.
    """
    cost = relative_cost(map_model)
    baseline = chunk_count + 1
    actual = chunk_count * cost + 1
    return round((baseline - actual) / baseline * 100)


class LargeDiffHandler:
    def __init__(
        self,
        estimator: TokenEstimator,
        splitter: DiffSplitter,
        processor: ChunkProcessor,
        merger: SummaryMerger,
        generator: SummaryGenerator,
        logger: Logger,
        clock: Clock,
        *,
        enable_map_reduce: bool,
        process_config: ProcessConfig,
        noise_filter: Optional[NoiseFilter] = None,
        feedback: Optional[FeedbackSink] = None,
        model_selector: Optional[ModelSelector] = None,
    ) -> None:
        self._estimator = estimator
        self._splitter = splitter
        self._processor = processor
        self._merger = merger
        self._generator = generator
        self._logger = logger
        self._clock = clock
        self._enable_map_reduce = enable_map_reduce
        self._process_config = process_config
        self._noise_filter = noise_filter
        self._feedback = feedback
        self._model_selector = model_selector or ModelSelector(logger, feedback)

    def handle(self, changes: Sequence[FileChange], options: GenerationOptions) -> str:
        changes = self._filter(changes, options)
        diff = changes_to_diff(changes)
        limits = self._estimator.config_info()
        self._logger.info(
            'Token budget',
            model=limits.model_name,
            raw_limit=limits.raw_limit,
            effective_limit=limits.effective_limit,
            safety_margin_percent=limits.safety_margin_percent,
            custom_limit=limits.is_custom_limit,
            estimated_tokens=self._estimator.estimate(diff),
            map_reduce=self._enable_map_reduce,
        )

        if not self._enable_map_reduce:
            return self._summarize_truncated(diff)

        if not self._estimator.needs_split(diff):
            self._logger.info('Diff fits the model limit')
            return self._generator.generate_summary(diff)

        return self._map_reduce(diff, options)

    def needs_large_diff_handling(self, changes: Sequence[FileChange]) -> bool:
        return self._estimator.needs_split(changes_to_diff(changes))

    def _filter(
        self, changes: Sequence[FileChange], options: GenerationOptions
    ) -> List[FileChange]:
        if not options.enable_smart_filter or self._noise_filter is None:
            return list(changes)

        try:
            result = self._noise_filter.filter_changes(changes)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning(
                'Noise filter failed, using unfiltered changes',
                error=str(exc),
                file_count=len(changes),
            )
            return list(changes)

        if self._feedback is not None:
            self._feedback.filter_stats(result.stats)
        if not result.filtered_changes:
            return list(changes)
        return list(result.filtered_changes)

    def _summarize_truncated(self, diff: str) -> str:
        text, truncated = truncate_to_fit(diff, self._estimator)
        if truncated:
            self._logger.warning(
                'Map-reduce disabled, diff truncated',
                original_length=len(diff),
                truncated_length=len(text),
            )
            text += TRUNCATION_NOTICE
        return self._generator.generate_summary(text)

    def _map_reduce(self, diff: str, options: GenerationOptions) -> str:
        selection = self._model_selector.select(options)
        chunks = self._splitter.split(diff, self._estimator.get_effective_limit())
        self._logger.info(
            'Running map-reduce',
            chunk_count=len(chunks),
            map_model=selection.model_id,
            reduce_model=options.model_name,
        )
        if self._feedback is not None:
            self._feedback.model_selection(selection.model_id, options.model_name, len(chunks))
            self._feedback.processing_started(len(chunks))

        started = self._clock.monotonic()
        config = replace(self._process_config, map_model_id=selection.model_id)
        summaries = self._processor.process_chunks(chunks, config)
        message = self._merger.merge(summaries, options)
        duration = self._clock.monotonic() - started

        self._logger.info(
            'Map-reduce complete',
            chunk_count=len(chunks),
            failed_chunks=sum(1 for summary in summaries if not summary.success),
            duration=round(duration, 2),
        )
        if self._feedback is not None:
            self._feedback.processing_completed(len(chunks), duration)
            self._report_usage(selection, options, len(chunks), duration)
        return message

    def _report_usage(
        self,
        selection: ModelSelection,
        options: GenerationOptions,
        chunk_count: int,
        duration: float,
    ) -> None:
        if selection.used_fallback or selection.model_id == options.model_name:
            return
        savings = estimate_savings(selection.model_id, chunk_count)
        self._feedback.usage_summary(
            selection.model_id,
            options.model_name,
            chunk_count,
            savings,
            duration=duration,
        )
