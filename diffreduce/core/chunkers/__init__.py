from diffreduce.core.chunkers.base import BaseSplitter
from diffreduce.core.chunkers.diff import (
    DEFAULT_MAX_TOKENS,
    DiffSplitter,
    extract_file_path,
    merged_label,
)

__all__ = [
    "BaseSplitter",
    "DiffSplitter",
    "DEFAULT_MAX_TOKENS",
    "extract_file_path",
    "merged_label",
]
