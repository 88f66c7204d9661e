import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from diffreduce.core.schema.chunk import Chunk, ChunkSummary

CHUNK_INSTRUCTION = (
    'Summarize the following part of a code change in a few concise '
    'sentences. Focus on what changed and why it matters.'
)
MERGE_INSTRUCTION = (
    'Combine the following code change summaries into one coherent git '
    'commit message:'
)

LANGUAGE_NAMES: Mapping[str, str] = MappingProxyType(
    {
        'en': 'English',
        'en-us': 'English',
        'en-gb': 'English',
        'zh-cn': 'Simplified Chinese',
        'zh-tw': 'Traditional Chinese',
        'ja': 'Japanese',
        'de': 'German',
        'fr': 'French',
        'es': 'Spanish',
    }
)

CONVENTIONAL_TYPES: Tuple[str, ...] = (
    'feat',
    'fix',
    'docs',
    'style',
    'refactor',
    'test',
    'chore',
    'perf',
    'ci',
    'build',
    'revert',
)

_CONVENTIONAL_PATTERN = re.compile(
    r'^(' + '|'.join(CONVENTIONAL_TYPES) + r')(\(.+\))?!?:\s*.+'
)

# Checked in order; first hit wins.
_CHANGE_TYPE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('fix', ('fix', 'bug', '修复')),
    ('feat', ('add', 'feat', '添加', '新增')),
    ('docs', ('doc', '文档')),
    ('refactor', ('refactor', '重构', '优化')),
    ('test', ('test', '测试')),
    ('style', ('style', '格式')),
)


def language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language.lower(), language)


def build_chunk_prompt(chunk: Chunk) -> str:
    parts = [
        CHUNK_INSTRUCTION,
        '',
        f'File: {chunk.file_path}',
        f'Chunk: {chunk.chunk_index + 1}/{chunk.total_chunks}',
        f'Split level: {chunk.split_level.value}',
    ]
    if chunk.context.function_name:
        parts.append(f'Function: {chunk.context.function_name}')
    if chunk.context.previous_summary:
        parts.append(f'\nSummary of the previous chunk:\n{chunk.context.previous_summary}')
    parts.append(f'\nChanges:\n{chunk.content}')
    return '\n'.join(parts)


def build_merge_prompt(
    summaries: Sequence[ChunkSummary], language: str, commit_format: str
) -> str:
    by_file: Dict[str, List[str]] = {}
    for summary in summaries:
        by_file.setdefault(summary.file_path, []).append(summary.summary)

    parts = [MERGE_INSTRUCTION, '']
    for file_path, file_summaries in by_file.items():
        parts.append(f'File: {file_path}')
        parts.extend(f'  - {text}' for text in file_summaries)
        parts.append('')

    if commit_format == 'conventional':
        parts.append('Use the Conventional Commits format: type(scope): subject')
        parts.append('Types: ' + ', '.join(CONVENTIONAL_TYPES[:7]))
    parts.append(f'Write the commit message in {language_name(language)}.')
    return '\n'.join(parts)


def is_conventional(message: str) -> bool:
    return bool(_CONVENTIONAL_PATTERN.match(message))


def detect_change_type(message: str) -> str:
    lowered = message.lower()
    for change_type, keywords in _CHANGE_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return change_type
    return 'chore'


def format_commit_message(message: str, commit_format: str) -> str:
    formatted = message.strip()
    if commit_format == 'conventional' and formatted and not is_conventional(formatted):
        formatted = f'{detect_change_type(formatted)}: {formatted}'
    return formatted
