from diffreduce.core.chunkers import DiffSplitter, extract_file_path, merged_label
from diffreduce.core.schema.chunk import SplitLevel
from diffreduce.core.tokens import TokenEstimator


def _file_diff(
    path: str,
    hunks: int = 1,
    lines_per_hunk: int = 3,
    function: str = "",
) -> str:
    lines = [
        f"diff --git a/{path} b/{path}",
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
    ]
    for hunk in range(hunks):
        start = hunk * 100 + 1
        suffix = f" {function}" if function else ""
        lines.append(f"@@ -{start},{lines_per_hunk} +{start},{lines_per_hunk} @@{suffix}")
        lines.extend(f"+{path} hunk {hunk} line {index}" for index in range(lines_per_hunk))
    return "\n".join(lines)


def _splitter() -> DiffSplitter:
    return DiffSplitter(TokenEstimator("gpt-4"))


def _assert_numbering(chunks) -> None:
    assert [chunk.chunk_index for chunk in chunks] == list(range(len(chunks)))
    assert all(chunk.total_chunks == len(chunks) for chunk in chunks)


class TestSplit:
    def test_empty_input_gives_no_chunks(self) -> None:
        assert _splitter().split("", 100) == []
        assert _splitter().split("  \n\n", 100) == []

    def test_text_that_fits_is_one_chunk(self) -> None:
        text = _file_diff("src/app.py")

        chunks = _splitter().split(text, 1000)

        assert len(chunks) == 1
        assert chunks[0].content == text
        assert chunks[0].file_path == "src/app.py"
        assert (chunks[0].chunk_index, chunks[0].total_chunks) == (0, 1)

    def test_text_without_boundaries_is_kept_whole(self) -> None:
        text = "\n".join(f"plain line {index}" for index in range(200))

        chunks = _splitter().split(text, 50)

        assert len(chunks) == 1
        assert chunks[0].content == text
        assert chunks[0].file_path == "unknown"

    def test_indices_are_contiguous_after_merging(self) -> None:
        text = "\n".join(
            [
                _file_diff("a.py", hunks=6, lines_per_hunk=10),
                _file_diff("b.py"),
                _file_diff("c.py", hunks=2, lines_per_hunk=40),
                _file_diff("d.py"),
            ]
        )

        for budget in (60, 120, 300, 700):
            chunks = _splitter().split(text, budget)
            _assert_numbering(chunks)

    def test_merged_chunks_stay_within_budget(self) -> None:
        estimator = TokenEstimator("gpt-4")
        splitter = DiffSplitter(estimator)
        text = "\n".join(_file_diff(f"pkg/mod{index}.py", hunks=3) for index in range(8))

        for budget in (80, 150, 400):
            chunks = splitter.split(text, budget)
            assert all(estimator.estimate(chunk.content) <= budget for chunk in chunks)

    def test_every_line_survives_splitting(self) -> None:
        text = "\n".join(
            [_file_diff("a.py", hunks=4, lines_per_hunk=20), _file_diff("b.py", hunks=2)]
        )

        chunks = _splitter().split(text, 90)

        produced = set()
        for chunk in chunks:
            produced.update(chunk.content.split("\n"))
        assert set(text.split("\n")) <= produced

    def test_small_neighbours_are_packed_together(self) -> None:
        estimator = TokenEstimator("gpt-4")
        files = [_file_diff(name) for name in ("a.py", "b.py", "c.py", "d.py")]
        budget = estimator.estimate(files[0] + "\n" + files[1])

        chunks = DiffSplitter(estimator).split("\n".join(files), budget)

        assert [chunk.file_path for chunk in chunks] == ["a.py, b.py", "c.py, d.py"]
        assert chunks[0].context.related_files == ("a.py", "b.py")
        assert chunks[0].split_level is SplitLevel.FILE


class TestSplitByFiles:
    def test_one_chunk_per_file(self) -> None:
        paths = ["src/a.py", "src/b.py", "docs/c.md"]
        text = "\n".join(_file_diff(path) for path in paths)

        chunks = _splitter().split_by_files(text)

        assert [chunk.file_path for chunk in chunks] == paths
        assert all(chunk.content.startswith("diff --git a/") for chunk in chunks)
        assert all(chunk.split_level is SplitLevel.FILE for chunk in chunks)
        assert "\n".join(chunk.content for chunk in chunks) == text
        _assert_numbering(chunks)

    def test_keeps_file_header_as_context(self) -> None:
        chunks = _splitter().split_by_files(_file_diff("a.py"))

        assert chunks[0].context.file_header == "\n".join(
            [
                "diff --git a/a.py b/a.py",
                "index 1111111..2222222 100644",
                "--- a/a.py",
                "+++ b/a.py",
            ]
        )


class TestSplitByHunks:
    def test_one_chunk_per_hunk_with_file_header(self) -> None:
        text = _file_diff("app.py", hunks=3, function="def handler():")

        chunks = _splitter().split_by_hunks(text, 1000)

        assert len(chunks) == 3
        for hunk, chunk in enumerate(chunks):
            assert chunk.content.startswith("diff --git a/app.py b/app.py\n")
            assert chunk.content.count("\n@@ ") == 1
            assert f"+app.py hunk {hunk} line 0" in chunk.content
            assert chunk.context.function_name == "def handler():"
            assert chunk.split_level is SplitLevel.HUNK
            assert chunk.file_path == "app.py"
        _assert_numbering(chunks)

    def test_hunk_without_function_has_no_function_name(self) -> None:
        chunks = _splitter().split_by_hunks(_file_diff("app.py", hunks=2), 1000)

        assert all(chunk.context.function_name is None for chunk in chunks)

    def test_oversized_hunk_falls_through_to_lines(self) -> None:
        text = _file_diff("big.py", hunks=1, lines_per_hunk=200)

        chunks = _splitter().split_by_hunks(text, 60)

        assert len(chunks) > 1
        assert all(chunk.split_level is SplitLevel.LINE for chunk in chunks)


class TestSplitByLines:
    def test_never_breaks_a_line(self) -> None:
        text = _file_diff("big.py", hunks=1, lines_per_hunk=200)
        original_lines = set(text.split("\n"))

        chunks = _splitter().split_by_lines(text, 60)

        assert len(chunks) > 1
        for chunk in chunks:
            assert set(chunk.content.split("\n")) <= original_lines

    def test_repeats_header_and_preserves_body_order(self) -> None:
        text = _file_diff("big.py", hunks=1, lines_per_hunk=200)
        lines = text.split("\n")
        header, body = lines[:4], lines[4:]

        chunks = _splitter().split_by_lines(text, 60)

        rebuilt = []
        for chunk in chunks:
            chunk_lines = chunk.content.split("\n")
            assert chunk_lines[:4] == header
            rebuilt.extend(chunk_lines[4:])
        assert rebuilt == body

    def test_chunks_fit_budget_when_lines_do(self) -> None:
        estimator = TokenEstimator("gpt-4")
        text = _file_diff("big.py", hunks=1, lines_per_hunk=120)

        chunks = DiffSplitter(estimator).split_by_lines(text, 60)

        assert all(estimator.estimate(chunk.content) <= 60 for chunk in chunks)


class TestHelpers:
    def test_merged_label(self) -> None:
        assert merged_label(["a.py"]) == "a.py"
        assert merged_label(["a.py", "b.py", "c.py"]) == "a.py, b.py, c.py"
        assert merged_label(["a", "b", "c", "d", "e"]) == "Multiple files (5)"

    def test_many_files_get_a_counted_label(self) -> None:
        estimator = TokenEstimator("gpt-4")
        text = "\n".join(_file_diff(f"f{index}.py") for index in range(5))
        splitter = DiffSplitter(estimator)

        merged = splitter.merge_small_chunks(splitter.split_by_files(text), 10_000)

        assert len(merged) == 1
        assert merged[0].file_path == "Multiple files (5)"
        assert merged[0].files == tuple(f"f{index}.py" for index in range(5))

    def test_extract_file_path(self) -> None:
        assert extract_file_path(_file_diff("src/x.py")) == "src/x.py"
        assert extract_file_path("--- a/old.py\n+++ b/new.py") == "new.py"
        assert extract_file_path("--- a/gone.py\n+++ /dev/null") == "gone.py"
        assert extract_file_path("no markers here") == "unknown"
