import math
from typing import List, Sequence

from diffreduce.core.pipeline.prompts import build_merge_prompt, format_commit_message
from diffreduce.core.ports.logger import Logger
from diffreduce.core.ports.summary_generator import SummaryGenerator
from diffreduce.core.schema.chunk import ChunkSummary
from diffreduce.core.schema.generation import GenerationOptions
from diffreduce.core.tokens import TokenEstimator

DEFAULT_MAX_DEPTH = 5
DEFAULT_PROMPT_OVERHEAD = 500
_MIN_GROUP_SIZE = 2


class SummaryMerger:
    def __init__(
        self,
        estimator: TokenEstimator,
        generator: SummaryGenerator,
        logger: Logger,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        prompt_overhead: int = DEFAULT_PROMPT_OVERHEAD,
    ) -> None:
        self._estimator = estimator
        self._generator = generator
        self._logger = logger
        self._max_depth = max_depth
        self._prompt_overhead = prompt_overhead

    def merge(
        self, summaries: Sequence[ChunkSummary], options: GenerationOptions
    ) -> str:
        if not summaries:
            return ''

        successful = _successful(summaries)
        if not successful:
            errors = '; '.join(
                summary.error or 'unknown error'
                for summary in summaries
                if not summary.success
            )
            self._logger.error('Every chunk summary failed', chunk_count=len(summaries))
            return f'Unable to generate commit message: {errors}'

        if len(successful) == 1:
            return format_commit_message(successful[0].summary, options.commit_format)

        prompt = self._merge_prompt(successful, options)
        if self._estimator.needs_split(prompt):
            self._logger.info(
                'Merge prompt over budget, merging recursively',
                summary_count=len(successful),
            )
            return self.recursive_merge(successful, options)

        merged = self._generator.generate_summary(prompt)
        return format_commit_message(merged, options.commit_format)

    def recursive_merge(
        self,
        summaries: Sequence[ChunkSummary],
        options: GenerationOptions,
        depth: int = 0,
    ) -> str:
        successful = _successful(summaries)
        if not successful:
            return ''
        if len(successful) == 1:
            return format_commit_message(successful[0].summary, options.commit_format)

        prompt = self._merge_prompt(successful, options)
        if not self._estimator.needs_split(prompt):
            merged = self._generator.generate_summary(prompt)
            return format_commit_message(merged, options.commit_format)

        if depth >= self._max_depth:
            self._logger.warning(
                'Maximum merge depth reached, joining summaries',
                depth=depth,
                summary_count=len(successful),
            )
            combined = '\n'.join(summary.summary for summary in successful)
            return format_commit_message(combined, options.commit_format)

        group_size = self._group_size(successful)
        if group_size >= len(successful):
            self._logger.warning(
                'Summaries cannot be grouped under the limit, joining summaries',
                depth=depth,
                summary_count=len(successful),
            )
            combined = '\n'.join(summary.summary for summary in successful)
            return format_commit_message(combined, options.commit_format)

        groups = [
            successful[start:start + group_size]
            for start in range(0, len(successful), group_size)
        ]
        self._logger.debug(
            'Merging summary groups',
            depth=depth,
            group_count=len(groups),
            group_size=group_size,
        )
        next_level = [
            ChunkSummary(
                file_path=f'group-{index}',
                chunk_index=index,
                summary=self._merge_group(group, options),
                success=True,
            )
            for index, group in enumerate(groups)
        ]
        return self.recursive_merge(next_level, options, depth + 1)

    def _merge_group(
        self, group: Sequence[ChunkSummary], options: GenerationOptions
    ) -> str:
        if len(group) == 1:
            return group[0].summary
        return self._generator.generate_summary(self._merge_prompt(group, options))

    def _merge_prompt(
        self, summaries: Sequence[ChunkSummary], options: GenerationOptions
    ) -> str:
        return build_merge_prompt(summaries, options.language, options.commit_format)

    def _group_size(self, summaries: Sequence[ChunkSummary]) -> int:
        total = sum(self._estimator.estimate(summary.summary) for summary in summaries)
        average = max(1.0, total / len(summaries))
        available = max(1, self._estimator.get_effective_limit() - self._prompt_overhead)
        return max(_MIN_GROUP_SIZE, math.floor(available / average))


def _successful(summaries: Sequence[ChunkSummary]) -> List[ChunkSummary]:
    return [summary for summary in summaries if summary.success and summary.summary]
