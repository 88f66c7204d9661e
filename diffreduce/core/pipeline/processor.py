from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from tenacity import RetryCallState, Retrying, stop_after_attempt, wait_exponential

from diffreduce.core.pipeline.prompts import build_chunk_prompt
from diffreduce.core.ports.clock import Clock
from diffreduce.core.ports.logger import Logger
from diffreduce.core.ports.summary_generator import SummaryGenerator
from diffreduce.core.schema.chunk import Chunk, ChunkSummary, ProcessConfig

Lane = List[Tuple[int, Chunk]]


class ChunkProcessor:
    def __init__(
        self,
        generator: SummaryGenerator,
        logger: Logger,
        clock: Clock,
    ) -> None:
        self._generator = generator
        self._logger = logger
        self._clock = clock
        self._summaries: Dict[str, str] = {}

    def process_chunks(
        self, chunks: Sequence[Chunk], config: ProcessConfig
    ) -> List[ChunkSummary]:
        if not chunks:
            return []

        self._summaries.clear()
        concurrency = max(1, config.concurrency)
        results: List[Optional[ChunkSummary]] = [None] * len(chunks)

        for start in range(0, len(chunks), concurrency):
            group = list(enumerate(chunks[start:start + concurrency], start=start))
            lanes = _split_lanes(group)
            with ThreadPoolExecutor(
                max_workers=len(lanes),
                thread_name_prefix='ChunkProcessor',
            ) as executor:
                futures = [
                    executor.submit(self._run_lane, lane, config) for lane in lanes
                ]
                for future in futures:
                    for index, summary in future.result():
                        results[index] = summary

        summaries = [summary for summary in results if summary is not None]
        failed = sum(1 for summary in summaries if not summary.success)
        self._logger.info(
            'Map stage complete',
            chunk_count=len(summaries),
            failed=failed,
            concurrency=concurrency,
            map_model=config.map_model_id,
        )
        return summaries

    def process_chunk(self, chunk: Chunk, config: ProcessConfig) -> ChunkSummary:
        retrying = Retrying(
            stop=stop_after_attempt(config.max_retries + 1),
            wait=wait_exponential(multiplier=config.initial_retry_delay),
            sleep=self._clock.sleep,
            before_sleep=lambda state: self._log_retry(chunk, state),
            reraise=True,
        )
        try:
            summary = retrying(
                self._generator.generate_summary,
                self.build_chunk_prompt(chunk),
                model_id=config.map_model_id,
            )
        except Exception as error:  # noqa: BLE001
            message = _error_message(error)
            self._logger.warning(
                'Chunk failed',
                file_path=chunk.file_path,
                chunk_index=chunk.chunk_index,
                attempts=config.max_retries + 1,
                error=message,
            )
            return ChunkSummary(
                file_path=chunk.file_path,
                chunk_index=chunk.chunk_index,
                summary='',
                success=False,
                error=message,
            )

        self._remember(chunk, summary)
        return ChunkSummary(
            file_path=chunk.file_path,
            chunk_index=chunk.chunk_index,
            summary=summary,
            success=True,
        )

    def build_chunk_prompt(self, chunk: Chunk) -> str:
        previous = self._previous_summary(chunk)
        if previous:
            chunk = replace(
                chunk, context=replace(chunk.context, previous_summary=previous)
            )
        return build_chunk_prompt(chunk)

    def _log_retry(self, chunk: Chunk, state: RetryCallState) -> None:
        self._logger.warning(
            'Retrying chunk',
            file_path=chunk.file_path,
            chunk_index=chunk.chunk_index,
            attempt=state.attempt_number + 1,
            delay=state.next_action.sleep if state.next_action else 0.0,
            error=_error_message(state.outcome.exception() if state.outcome else None),
        )

    def _run_lane(
        self, lane: Lane, config: ProcessConfig
    ) -> List[Tuple[int, ChunkSummary]]:
        return [(index, self.process_chunk(chunk, config)) for index, chunk in lane]

    def _previous_summary(self, chunk: Chunk) -> Optional[str]:
        if chunk.chunk_index == 0:
            return None
        for path in chunk.files:
            summary = self._summaries.get(_cache_key(path, chunk.chunk_index - 1))
            if summary:
                return summary
        return None

    def _remember(self, chunk: Chunk, summary: str) -> None:
        self._summaries[_cache_key(chunk.file_path, chunk.chunk_index)] = summary
        for path in chunk.context.related_files:
            self._summaries[_cache_key(path, chunk.chunk_index)] = summary


def _split_lanes(group: Sequence[Tuple[int, Chunk]]) -> List[Lane]:
    lanes: List[Lane] = []
    for index, chunk in group:
        if lanes and set(lanes[-1][-1][1].files) & set(chunk.files):
            lanes[-1].append((index, chunk))
        else:
            lanes.append([(index, chunk)])
    return lanes


def _cache_key(file_path: str, chunk_index: int) -> str:
    return f'{file_path}:{chunk_index}'


def _error_message(error: Optional[Exception]) -> str:
    if error is None:
        return 'processing failed'
    return str(error) or error.__class__.__name__
