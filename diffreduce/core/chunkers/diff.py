import re
from typing import List, Optional, Sequence

from diffreduce.core.chunkers.base import BaseSplitter
from diffreduce.core.schema.chunk import Chunk, SplitLevel

DEFAULT_MAX_TOKENS = 2000
MAX_LISTED_FILES = 3
UNKNOWN_FILE = 'unknown'

_FILE_HEADER_PATTERN = re.compile(r'^diff --git a/.+ b/(.+)$', re.MULTILINE)
_HUNK_HEADER_PATTERN = re.compile(
    r'^@@\s+-\d+(?:,\d+)?\s+\+\d+(?:,\d+)?\s+@@(.*)$', re.MULTILINE
)
_NEW_PATH_PATTERN = re.compile(r'^\+\+\+ b/(.+)$', re.MULTILINE)
_OLD_PATH_PATTERN = re.compile(r'^--- a/(.+)$', re.MULTILINE)


class DiffSplitter(BaseSplitter):
    def split(self, text: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> List[Chunk]:
        if not text or not text.strip():
            return []

        if self._fits(text, max_tokens):
            return [self._single_chunk(text)]

        chunks: List[Chunk] = []
        for file_chunk in self.split_by_files(text):
            if self._fits(file_chunk.content, max_tokens):
                chunks.append(file_chunk)
            else:
                chunks.extend(self.split_by_hunks(file_chunk.content, max_tokens))

        return self._renumber(self.merge_small_chunks(chunks, max_tokens))

    def split_by_files(self, text: str) -> List[Chunk]:
        if not text or not text.strip():
            return []

        matches = list(_FILE_HEADER_PATTERN.finditer(text))
        if not matches:
            return [self._single_chunk(text)]

        chunks: List[Chunk] = []
        preamble = text[: matches[0].start()]
        if preamble.strip():
            chunks.append(self._single_chunk(preamble.rstrip('\n')))

        for index, match in enumerate(matches):
            end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
            content = text[match.start():end].rstrip('\n')
            chunks.append(
                self._make_chunk(
                    content=content,
                    file_path=match.group(1).strip() or UNKNOWN_FILE,
                    split_level=SplitLevel.FILE,
                    file_header=_header_of(content),
                )
            )
        return self._renumber(chunks)

    def split_by_hunks(self, file_diff: str, max_tokens: int) -> List[Chunk]:
        if not file_diff or not file_diff.strip():
            return []

        file_path = extract_file_path(file_diff)
        matches = list(_HUNK_HEADER_PATTERN.finditer(file_diff))
        if not matches:
            return [self._single_chunk(file_diff, file_path)]

        file_header = file_diff[: matches[0].start()]
        chunks: List[Chunk] = []
        for index, match in enumerate(matches):
            end = (
                matches[index + 1].start()
                if index + 1 < len(matches)
                else len(file_diff)
            )
            content = file_header + file_diff[match.start():end].rstrip('\n')
            if self._fits(content, max_tokens):
                chunks.append(
                    self._make_chunk(
                        content=content,
                        file_path=file_path,
                        split_level=SplitLevel.HUNK,
                        file_header=file_header.rstrip('\n'),
                        function_name=_function_name(match),
                    )
                )
            else:
                chunks.extend(self.split_by_lines(content, max_tokens))
        return self._renumber(chunks)

    def split_by_lines(self, hunk: str, max_tokens: int) -> List[Chunk]:
        if not hunk or not hunk.strip():
            return []

        file_path = extract_file_path(hunk)
        lines = hunk.split('\n')
        header_length = _header_length(lines)
        file_header = '\n'.join(lines[:header_length])
        body = lines[header_length:]
        if not body:
            return [self._single_chunk(hunk, file_path)]

        header_tokens = self._estimator.estimate(file_header + '\n') if file_header else 0
        groups: List[List[str]] = []
        current: List[str] = []
        current_tokens = header_tokens
        for line in body:
            line_tokens = self._estimator.estimate(line + '\n')
            if current and current_tokens + line_tokens > max_tokens:
                groups.append(current)
                current = []
                current_tokens = header_tokens
            current.append(line)
            current_tokens += line_tokens
        if current:
            groups.append(current)

        chunks = [
            self._make_chunk(
                content=_with_header(file_header, group),
                file_path=file_path,
                split_level=SplitLevel.LINE,
                file_header=file_header,
            )
            for group in groups
        ]
        return self._renumber(chunks)

    def merge_small_chunks(
        self, chunks: Sequence[Chunk], max_tokens: int
    ) -> List[Chunk]:
        if len(chunks) <= 1:
            return list(chunks)

        merged: List[Chunk] = []
        group = [chunks[0]]
        group_content = chunks[0].content
        for chunk in chunks[1:]:
            candidate = group_content + '\n' + chunk.content
            if self._fits(candidate, max_tokens):
                group.append(chunk)
                group_content = candidate
                continue
            merged.append(self._combine(group, group_content))
            group = [chunk]
            group_content = chunk.content
        merged.append(self._combine(group, group_content))
        return merged

    def _combine(self, group: Sequence[Chunk], content: str) -> Chunk:
        if len(group) == 1:
            return group[0]

        files: List[str] = []
        for chunk in group:
            for path in chunk.files:
                if path not in files:
                    files.append(path)

        levels = {chunk.split_level for chunk in group}
        split_level = group[0].split_level if len(levels) == 1 else SplitLevel.FILE
        return self._make_chunk(
            content=content,
            file_path=merged_label(files),
            split_level=split_level,
            file_header=group[0].context.file_header,
            related_files=tuple(files) if len(files) > 1 else (),
        )

    def _single_chunk(self, content: str, file_path: Optional[str] = None) -> Chunk:
        return self._make_chunk(
            content=content,
            file_path=file_path or extract_file_path(content),
            split_level=SplitLevel.FILE,
            file_header=_header_of(content),
        )


def extract_file_path(diff: str) -> str:
    for pattern in (_FILE_HEADER_PATTERN, _NEW_PATH_PATTERN, _OLD_PATH_PATTERN):
        match = pattern.search(diff)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return UNKNOWN_FILE


def merged_label(files: Sequence[str]) -> str:
    if len(files) == 1:
        return files[0]
    if len(files) <= MAX_LISTED_FILES:
        return ', '.join(files)
    return f'Multiple files ({len(files)})'


def _header_of(content: str) -> str:
    hunk_start = content.find('\n@@')
    if hunk_start > 0:
        return content[:hunk_start]
    return content.split('\n', 1)[0]


def _header_length(lines: Sequence[str]) -> int:
    for index, line in enumerate(lines):
        if line.startswith('@@'):
            return index
    return 0


def _function_name(match: 're.Match[str]') -> Optional[str]:
    name = match.group(1).strip()
    return name or None


def _with_header(file_header: str, lines: Sequence[str]) -> str:
    body = '\n'.join(lines)
    if not file_header:
        return body
    return f'{file_header}\n{body}'
