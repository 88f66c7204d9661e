from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class SplitLevel(Enum):
    FILE = "file"
    HUNK = "hunk"
    LINE = "line"


@dataclass(frozen=True, slots=True)
class ChunkContext:
    file_header: str
    function_name: Optional[str] = None
    previous_summary: Optional[str] = None
    related_files: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Chunk:
    content: str
    file_path: str
    chunk_index: int
    total_chunks: int
    split_level: SplitLevel
    context: ChunkContext

    @property
    def files(self) -> Tuple[str, ...]:
        """Every file this chunk carries, the owning path first."""
        if self.context.related_files:
            return self.context.related_files
        return (self.file_path,)


@dataclass(frozen=True, slots=True)
class ChunkSummary:
    file_path: str
    chunk_index: int
    summary: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ProcessConfig:
    concurrency: int
    max_retries: int
    initial_retry_delay: float
    map_model_id: Optional[str] = None
