from typing import Optional

from diffreduce.core.ports.feedback import FeedbackSink
from diffreduce.core.ports.logger import Logger
from diffreduce.core.schema.change import FilterStats


def filter_status_message(stats: FilterStats) -> str:
    if not stats.filtered:
        if stats.skip_reason:
            return f"Smart filter skipped ({stats.skip_reason})"
        return "Smart filter skipped"
    if stats.ignored_files == 0:
        return f"Smart filter analyzed {stats.total_files} files, all are core files"
    return (
        f"Smart filter analyzed {stats.total_files} files, focused on "
        f"{stats.core_files} core files (ignored {stats.ignored_files} noise files)"
    )


class LoggerFeedback(FeedbackSink):
    """Feedback sink for the command line: every notice becomes a log line."""

    def __init__(self, logger: Logger) -> None:
        self._logger = logger

    def model_fallback(self, attempted_model: str, fallback_model: str, reason: str) -> None:
        self._logger.warning(
            f"Map model {attempted_model} not used, falling back to {fallback_model}",
            reason=reason,
        )

    def model_selection(self, map_model: str, reduce_model: str, chunk_count: int) -> None:
        self._logger.info(
            f"Summarizing {chunk_count} chunks with {map_model}, merging with {reduce_model}"
        )

    def processing_started(self, chunk_count: int) -> None:
        self._logger.info(f"Processing {chunk_count} chunks")

    def processing_completed(self, chunk_count: int, duration: float) -> None:
        self._logger.info(f"Processed {chunk_count} chunks in {duration:.1f}s")

    def usage_summary(
        self,
        map_model: str,
        reduce_model: str,
        chunk_count: int,
        savings_percent: int,
        duration: Optional[float] = None,
    ) -> None:
        self._logger.info(
            f"Estimated cost savings: ~{savings_percent}%",
            map_model=map_model,
            reduce_model=reduce_model,
            chunk_count=chunk_count,
            duration=duration,
        )

    def filter_stats(self, stats: FilterStats) -> None:
        self._logger.info(
            filter_status_message(stats),
            total_files=stats.total_files,
            core_files=stats.core_files,
            ignored_files=stats.ignored_files,
        )
