from abc import ABC, abstractmethod
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from diffreduce.core.schema.chunk import Chunk, ChunkContext, SplitLevel
from diffreduce.core.tokens import TokenEstimator


class BaseSplitter(ABC):
    def __init__(self, estimator: TokenEstimator) -> None:
        self._estimator = estimator

    @abstractmethod
    def split(self, text: str, max_tokens: int) -> List[Chunk]:
        ...

    def _fits(self, text: str, max_tokens: int) -> bool:
        return self._estimator.estimate(text) <= max_tokens

    def _make_chunk(
        self,
        *,
        content: str,
        file_path: str,
        split_level: SplitLevel,
        file_header: str,
        function_name: Optional[str] = None,
        related_files: Tuple[str, ...] = (),
        chunk_index: int = 0,
        total_chunks: int = 1,
    ) -> Chunk:
        return Chunk(
            content=content,
            file_path=file_path,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            split_level=split_level,
            context=ChunkContext(
                file_header=file_header,
                function_name=function_name,
                related_files=related_files,
            ),
        )

    @staticmethod
    def _renumber(chunks: Sequence[Chunk]) -> List[Chunk]:
        total = len(chunks)
        return [
            replace(chunk, chunk_index=index, total_chunks=total)
            for index, chunk in enumerate(chunks)
        ]
