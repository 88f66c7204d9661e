from typing import Protocol, Sequence, runtime_checkable

from diffreduce.core.schema.change import FileChange, FilterResult


@runtime_checkable
class NoiseFilter(Protocol):
    def filter_changes(self, changes: Sequence[FileChange]) -> FilterResult:
        ...
