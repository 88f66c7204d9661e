from typing import Optional, Protocol, runtime_checkable

from diffreduce.core.schema.change import FilterStats


@runtime_checkable
class FeedbackSink(Protocol):
    def model_fallback(
        self, attempted_model: str, fallback_model: str, reason: str
    ) -> None: ...

    def model_selection(
        self, map_model: str, reduce_model: str, chunk_count: int
    ) -> None: ...

    def processing_started(self, chunk_count: int) -> None: ...

    def processing_completed(self, chunk_count: int, duration: float) -> None: ...

    def usage_summary(
        self,
        map_model: str,
        reduce_model: str,
        chunk_count: int,
        savings_percent: int,
        duration: Optional[float] = None,
    ) -> None: ...

    def filter_stats(self, stats: FilterStats) -> None: ...
