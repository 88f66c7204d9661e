from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ChangeStatus(Enum):
    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True, slots=True)
class FileChange:
    path: str
    status: ChangeStatus
    diff: str
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True, slots=True)
class FilterStats:
    total_files: int
    core_files: int
    ignored_files: int
    filtered: bool
    skip_reason: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FilterResult:
    filtered_changes: Tuple[FileChange, ...]
    stats: FilterStats

    @classmethod
    def unfiltered(
        cls, changes: Tuple[FileChange, ...], reason: str
    ) -> "FilterResult":
        total = len(changes)
        return cls(
            filtered_changes=changes,
            stats=FilterStats(
                total_files=total,
                core_files=total,
                ignored_files=0,
                filtered=False,
                skip_reason=reason,
            ),
        )
