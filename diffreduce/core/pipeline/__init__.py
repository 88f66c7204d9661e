from diffreduce.core.pipeline.handler import (
    TRUNCATION_NOTICE,
    LargeDiffHandler,
    changes_to_diff,
    estimate_savings,
    truncate_to_fit,
)
from diffreduce.core.pipeline.merger import SummaryMerger
from diffreduce.core.pipeline.processor import ChunkProcessor

__all__ = [
    "ChunkProcessor",
    "LargeDiffHandler",
    "SummaryMerger",
    "TRUNCATION_NOTICE",
    "changes_to_diff",
    "estimate_savings",
    "truncate_to_fit",
]
