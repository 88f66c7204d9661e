from diffreduce.core.schema.change import (
    ChangeStatus,
    FileChange,
    FilterResult,
    FilterStats,
)
from diffreduce.core.schema.chunk import (
    Chunk,
    ChunkContext,
    ChunkSummary,
    ProcessConfig,
    SplitLevel,
)
from diffreduce.core.schema.generation import GenerationOptions, ModelSelection

__all__ = [
    "SplitLevel",
    "ChunkContext",
    "Chunk",
    "ChunkSummary",
    "ProcessConfig",
    "ChangeStatus",
    "FileChange",
    "FilterStats",
    "FilterResult",
    "GenerationOptions",
    "ModelSelection",
]
