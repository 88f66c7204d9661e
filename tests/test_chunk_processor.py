import threading
import time

from diffreduce.core.pipeline import ChunkProcessor
from diffreduce.core.pipeline.processor import _split_lanes
from diffreduce.core.schema.chunk import Chunk, ChunkContext, ProcessConfig, SplitLevel
from tests.fakes import FakeClock, FakeLogger, FakeSummaryGenerator


def _chunk(
    path: str,
    index: int = 0,
    total: int = 1,
    related: tuple[str, ...] = (),
) -> Chunk:
    return Chunk(
        content=f"diff --git a/{path} b/{path}\n@@ -1 +1 @@\n+{path} change {index}",
        file_path=path,
        chunk_index=index,
        total_chunks=total,
        split_level=SplitLevel.HUNK,
        context=ChunkContext(
            file_header=f"diff --git a/{path} b/{path}",
            related_files=related,
        ),
    )


def _config(concurrency: int = 3, max_retries: int = 2, delay: float = 1.0, model=None):
    return ProcessConfig(
        concurrency=concurrency,
        max_retries=max_retries,
        initial_retry_delay=delay,
        map_model_id=model,
    )


class TestProcessChunk:
    def test_success_on_first_attempt(self, clock: FakeClock, logger: FakeLogger) -> None:
        generator = FakeSummaryGenerator()
        processor = ChunkProcessor(generator, logger, clock)

        summary = processor.process_chunk(_chunk("a.py"), _config())

        assert summary.success is True
        assert summary.summary == "updated a.py"
        assert summary.error is None
        assert len(generator.calls) == 1
        assert clock.slept == []

    def test_permanent_failure_makes_one_plus_max_retries_calls(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        generator = FakeSummaryGenerator(fail_when=lambda prompt: True)
        processor = ChunkProcessor(generator, logger, clock)

        summary = processor.process_chunk(_chunk("a.py"), _config(max_retries=3, delay=1.0))

        assert len(generator.calls) == 4
        assert summary.success is False
        assert summary.summary == ""
        assert summary.error == "generation failed"
        assert clock.slept == [1.0, 2.0, 4.0]
        assert logger.messages("warning").count("Retrying chunk") == 3
        assert "Chunk failed" in logger.messages("warning")

    def test_retry_warning_carries_attempt_and_delay(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        generator = FakeSummaryGenerator(fail_when=lambda prompt: True)
        processor = ChunkProcessor(generator, logger, clock)

        processor.process_chunk(_chunk("a.py"), _config(max_retries=2, delay=0.5))

        retries = [context for level, message, context in logger.records if message == "Retrying chunk"]
        assert [(context["attempt"], context["delay"]) for context in retries] == [(2, 0.5), (3, 1.0)]
        assert all(context["error"] == "generation failed" for context in retries)

    def test_zero_retries_means_single_call(self, clock: FakeClock, logger: FakeLogger) -> None:
        generator = FakeSummaryGenerator(fail_when=lambda prompt: True)
        processor = ChunkProcessor(generator, logger, clock)

        summary = processor.process_chunk(_chunk("a.py"), _config(max_retries=0))

        assert len(generator.calls) == 1
        assert summary.success is False
        assert clock.slept == []

    def test_recovers_after_transient_failure(self, clock: FakeClock, logger: FakeLogger) -> None:
        attempts = []

        def fail_twice(prompt: str) -> bool:
            attempts.append(prompt)
            return len(attempts) <= 2

        generator = FakeSummaryGenerator(fail_when=fail_twice)
        processor = ChunkProcessor(generator, logger, clock)

        summary = processor.process_chunk(_chunk("a.py"), _config(max_retries=3, delay=0.25))

        assert summary.success is True
        assert len(generator.calls) == 3
        assert clock.slept == [0.25, 0.5]

    def test_prompt_describes_chunk_position(self, clock: FakeClock, logger: FakeLogger) -> None:
        processor = ChunkProcessor(FakeSummaryGenerator(), logger, clock)
        chunk = Chunk(
            content="+x = 1",
            file_path="a.py",
            chunk_index=2,
            total_chunks=5,
            split_level=SplitLevel.LINE,
            context=ChunkContext(file_header="diff --git a/a.py b/a.py", function_name="run()"),
        )

        prompt = processor.build_chunk_prompt(chunk)

        assert "File: a.py" in prompt
        assert "Chunk: 3/5" in prompt
        assert "Split level: line" in prompt
        assert "Function: run()" in prompt
        assert prompt.endswith("Changes:\n+x = 1")
        assert "previous chunk" not in prompt


class TestProcessChunks:
    def test_empty_list(self, clock: FakeClock, logger: FakeLogger) -> None:
        generator = FakeSummaryGenerator()

        assert ChunkProcessor(generator, logger, clock).process_chunks([], _config()) == []
        assert generator.calls == []

    def test_results_follow_input_order(self, clock: FakeClock, logger: FakeLogger) -> None:
        chunks = [_chunk(f"f{index}.py", index, 7) for index in range(7)]
        processor = ChunkProcessor(FakeSummaryGenerator(), logger, clock)

        summaries = processor.process_chunks(chunks, _config(concurrency=3))

        assert [summary.file_path for summary in summaries] == [f"f{index}.py" for index in range(7)]
        assert [summary.chunk_index for summary in summaries] == list(range(7))
        assert all(summary.success for summary in summaries)

    def test_one_failure_does_not_affect_siblings(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        chunks = [_chunk(name, index, 5) for index, name in enumerate(
            ["a.py", "b.py", "broken.py", "c.py", "d.py"]
        )]
        generator = FakeSummaryGenerator(fail_when=lambda prompt: "File: broken.py" in prompt)
        processor = ChunkProcessor(generator, logger, clock)

        summaries = processor.process_chunks(chunks, _config(concurrency=2, max_retries=1))

        assert [summary.success for summary in summaries] == [True, True, False, True, True]
        assert summaries[2].error == "generation failed"
        assert [summary.summary for summary in summaries if summary.success] == [
            "updated a.py",
            "updated b.py",
            "updated c.py",
            "updated d.py",
        ]

    def test_forwards_map_model(self, clock: FakeClock, logger: FakeLogger) -> None:
        generator = FakeSummaryGenerator()
        processor = ChunkProcessor(generator, logger, clock)

        processor.process_chunks(
            [_chunk("a.py"), _chunk("b.py", 1, 2)], _config(model="gpt-4o-mini")
        )

        assert generator.model_ids == ["gpt-4o-mini", "gpt-4o-mini"]

    def test_omitted_map_model_is_forwarded_as_none(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        generator = FakeSummaryGenerator()

        ChunkProcessor(generator, logger, clock).process_chunks([_chunk("a.py")], _config())

        assert generator.model_ids == [None]

    def test_same_file_chunk_sees_previous_summary(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        generator = FakeSummaryGenerator(
            lambda prompt, model_id: "first half" if "Chunk: 1/2" in prompt else "second half"
        )
        processor = ChunkProcessor(generator, logger, clock)

        processor.process_chunks(
            [_chunk("a.py", 0, 2), _chunk("a.py", 1, 2)], _config(concurrency=4)
        )

        second_prompt = next(prompt for prompt in generator.prompts if "Chunk: 2/2" in prompt)
        assert "Summary of the previous chunk:\nfirst half" in second_prompt

    def test_merged_chunk_summary_is_shared_with_its_files(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        generator = FakeSummaryGenerator(
            lambda prompt, model_id: "touched both" if "Chunk: 1/2" in prompt else "tail"
        )
        processor = ChunkProcessor(generator, logger, clock)
        merged = _chunk("a.py, b.py", 0, 2, related=("a.py", "b.py"))

        processor.process_chunks([merged, _chunk("b.py", 1, 2)], _config(concurrency=2))

        second_prompt = next(prompt for prompt in generator.prompts if "Chunk: 2/2" in prompt)
        assert "Summary of the previous chunk:\ntouched both" in second_prompt

    def test_failed_predecessor_gives_no_context(
        self, clock: FakeClock, logger: FakeLogger
    ) -> None:
        generator = FakeSummaryGenerator(fail_when=lambda prompt: "Chunk: 1/2" in prompt)
        processor = ChunkProcessor(generator, logger, clock)

        summaries = processor.process_chunks(
            [_chunk("a.py", 0, 2), _chunk("a.py", 1, 2)], _config(max_retries=0)
        )

        assert [summary.success for summary in summaries] == [False, True]
        assert all("previous chunk" not in prompt for prompt in generator.prompts)

    def test_cache_is_cleared_between_runs(self, clock: FakeClock, logger: FakeLogger) -> None:
        generator = FakeSummaryGenerator()
        processor = ChunkProcessor(generator, logger, clock)

        processor.process_chunks([_chunk("a.py", 0, 2)], _config())
        processor.process_chunks([_chunk("a.py", 1, 2)], _config())

        assert "previous chunk" not in generator.prompts[-1]

    def test_never_exceeds_concurrency(self, clock: FakeClock, logger: FakeLogger) -> None:
        lock = threading.Lock()
        active = [0]
        peak = [0]

        def slow(prompt: str, model_id) -> str:
            with lock:
                active[0] += 1
                peak[0] = max(peak[0], active[0])
            time.sleep(0.02)
            with lock:
                active[0] -= 1
            return "ok"

        chunks = [_chunk(f"f{index}.py", index, 9) for index in range(9)]
        processor = ChunkProcessor(FakeSummaryGenerator(slow), logger, clock)

        summaries = processor.process_chunks(chunks, _config(concurrency=2))

        assert len(summaries) == 9
        assert 1 <= peak[0] <= 2


class TestLanes:
    def test_consecutive_chunks_of_one_file_share_a_lane(self) -> None:
        group = list(
            enumerate(
                [
                    _chunk("a.py", 0, 5),
                    _chunk("a.py", 1, 5),
                    _chunk("b.py", 2, 5),
                    _chunk("a.py, b.py", 3, 5, related=("a.py", "b.py")),
                    _chunk("c.py", 4, 5),
                ]
            )
        )

        lanes = _split_lanes(group)

        assert [[index for index, _ in lane] for lane in lanes] == [[0, 1], [2, 3], [4]]
