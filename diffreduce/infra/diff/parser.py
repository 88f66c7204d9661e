import re
from typing import List

from diffreduce.core.schema.change import ChangeStatus, FileChange

_FILE_HEADER_PATTERN = re.compile(r"^diff --git a/(.+?) b/(.+)$", re.MULTILINE)

_STATUS_MARKERS = (
    ("new file mode", ChangeStatus.ADDED),
    ("deleted file mode", ChangeStatus.DELETED),
    ("rename from", ChangeStatus.RENAMED),
    ("copy from", ChangeStatus.COPIED),
)


def parse_unified_diff(text: str) -> List[FileChange]:
    """Turns ``git diff`` output into one ``FileChange`` per file.

    The stored diff is everything after the ``diff --git`` line.
    """
    matches = list(_FILE_HEADER_PATTERN.finditer(text))
    changes = []
    for position, match in enumerate(matches):
        end = matches[position + 1].start() if position + 1 < len(matches) else len(text)
        body = text[match.end():end].strip("\n")
        additions, deletions = _count_lines(body)
        changes.append(
            FileChange(
                path=match.group(2),
                status=_status_of(body),
                diff=body,
                additions=additions,
                deletions=deletions,
            )
        )
    return changes


def _status_of(body: str) -> ChangeStatus:
    for line in body.split("\n"):
        if line.startswith("@@"):
            break
        for marker, status in _STATUS_MARKERS:
            if line.startswith(marker):
                return status
    return ChangeStatus.MODIFIED


def _count_lines(body: str):
    additions = deletions = 0
    for line in body.split("\n"):
        if line.startswith("+++") or line.startswith("---"):
            continue
        if line.startswith("+"):
            additions += 1
        elif line.startswith("-"):
            deletions += 1
    return additions, deletions
