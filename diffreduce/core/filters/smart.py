import json
import re
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

from diffreduce.core.exceptions import FilterResponseError, FilterTimeoutError
from diffreduce.core.ports.logger import Logger
from diffreduce.core.ports.summary_generator import SummaryGenerator
from diffreduce.core.schema.change import FileChange, FilterResult, FilterStats

T = TypeVar('T')

DEFAULT_MIN_FILES_THRESHOLD = 3
DEFAULT_MAX_FILE_LIST_SIZE = 500
DEFAULT_FILTER_TIMEOUT = 10.0
_MAX_LOGGED_PATHS = 5

_FENCE_PATTERN = re.compile(r'^```(?:json)?\s*|\s*```$', re.IGNORECASE)

FILTER_INSTRUCTION = """You are a senior tech lead reviewing the list of files in a git change.
Pick the files that carry the core logic of the change.

Ignore:
1. Lockfiles: package-lock.json, pnpm-lock.yaml, yarn.lock, poetry.lock, Cargo.lock
2. Build output: files under dist/, build/, out/, target/, bin/, obj/
3. Generated code: *.generated.ts, *_pb2.py, *.pb.go
4. Test snapshots: __snapshots__/, *.snap
5. Minified bundles: *.min.js, *.min.css, *.bundle.js
6. Static assets: images, fonts, *.png, *.jpg, *.svg, *.woff
7. IDE settings: .vscode/, .idea/, *.iml
8. Temporary files: *.tmp, *.log, *.cache

Keep source code, configuration (not lockfiles), documentation, tests and stylesheets.

Reply with a JSON array of the file paths to keep and nothing else.
Example input: [{"path": "src/app.py", "status": "Modified"}, {"path": "poetry.lock", "status": "Modified"}]
Example output: ["src/app.py"]"""


def call_with_timeout(func: Callable[[], T], timeout: float) -> T:
    """Runs ``func`` against a timer and returns whichever finishes first.

    When the timer wins, ``FilterTimeoutError`` is raised and the call is
    left to finish on its own thread.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='SmartDiffFilter')
    try:
        future = executor.submit(func)
        done, _ = wait([future], timeout=timeout, return_when=FIRST_COMPLETED)
        if future not in done:
            raise FilterTimeoutError(f'filter call timed out after {timeout}s', timeout)
        return future.result()
    finally:
        executor.shutdown(wait=False)


def clean_json_output(text: str) -> str:
    return _FENCE_PATTERN.sub('', text.strip()).strip()


def parse_filter_result(response: str) -> List[str]:
    cleaned = clean_json_output(response)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as error:
        raise FilterResponseError(f'filter response is not valid JSON: {error}') from error
    if not isinstance(parsed, list):
        raise FilterResponseError('filter response is not a JSON array')
    if not all(isinstance(item, str) for item in parsed):
        raise FilterResponseError('filter response contains non-string entries')
    return parsed


def build_file_list(changes: Sequence[FileChange]) -> List[Dict[str, str]]:
    return [{'path': change.path, 'status': change.status.label} for change in changes]


class SmartDiffFilter:
    def __init__(
        self,
        generator: SummaryGenerator,
        logger: Logger,
        *,
        min_files_threshold: int = DEFAULT_MIN_FILES_THRESHOLD,
        max_file_list_size: int = DEFAULT_MAX_FILE_LIST_SIZE,
        timeout: float = DEFAULT_FILTER_TIMEOUT,
        model_id: Optional[str] = None,
    ) -> None:
        self._generator = generator
        self._logger = logger
        self._min_files_threshold = min_files_threshold
        self._max_file_list_size = max_file_list_size
        self._timeout = timeout
        self._model_id = model_id

    def filter_changes(self, changes: Sequence[FileChange]) -> FilterResult:
        original: Tuple[FileChange, ...] = tuple(changes)
        total = len(original)

        skip_reason = self._skip_reason(total)
        if skip_reason is not None:
            self._logger.info('Skipping noise filter', reason=skip_reason, file_count=total)
            return FilterResult.unfiltered(original, skip_reason)

        try:
            response = call_with_timeout(
                lambda: self._generator.generate_summary(
                    self.build_prompt(original), model_id=self._model_id
                ),
                self._timeout,
            )
            kept_paths = self._validate_paths(parse_filter_result(response), original)
        except Exception as error:  # noqa: BLE001
            self._logger.warning(
                'Noise filter failed, using original file list',
                error=str(error),
                file_count=total,
            )
            return FilterResult.unfiltered(original, f'Filtering failed: {error}')

        if not kept_paths:
            self._logger.warning('Noise filter kept no files, using original file list')
            return FilterResult.unfiltered(original, 'Model returned no valid paths')

        filtered = tuple(change for change in original if change.path in kept_paths)
        self._logger.info(
            'Noise filter complete',
            total_files=total,
            core_files=len(filtered),
            ignored_files=total - len(filtered),
        )
        return FilterResult(
            filtered_changes=filtered,
            stats=FilterStats(
                total_files=total,
                core_files=len(filtered),
                ignored_files=total - len(filtered),
                filtered=True,
            ),
        )

    def build_prompt(self, changes: Sequence[FileChange]) -> str:
        file_list = json.dumps(build_file_list(changes), ensure_ascii=False)
        return (
            f'{FILTER_INSTRUCTION}\n\n'
            f'Files:\n{file_list}\n\n'
            'Reply only with a JSON array of strings, for example ["a.py", "b.py"].'
        )

    def _skip_reason(self, total: int) -> Optional[str]:
        if total == 0:
            return 'Empty file list'
        if total < self._min_files_threshold:
            return f'Too few files (< {self._min_files_threshold}), no filtering needed'
        if total > self._max_file_list_size:
            return f'Too many files (> {self._max_file_list_size}), skipping filter'
        return None

    def _validate_paths(
        self, paths: Sequence[str], changes: Sequence[FileChange]
    ) -> Set[str]:
        known = {change.path for change in changes}
        unknown = [path for path in paths if path not in known]
        if unknown:
            self._logger.warning(
                'Noise filter returned unknown paths',
                count=len(unknown),
                paths=', '.join(unknown[:_MAX_LOGGED_PATHS]),
            )
        return {path for path in paths if path in known}
