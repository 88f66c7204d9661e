from tests.fakes.clock import FakeClock
from tests.fakes.feedback import FakeFeedback
from tests.fakes.generator import FakeSummaryGenerator, describe_files
from tests.fakes.logger import FakeLogger
from tests.fakes.noise_filter import FakeNoiseFilter

__all__ = [
    "FakeClock",
    "FakeFeedback",
    "FakeLogger",
    "FakeNoiseFilter",
    "FakeSummaryGenerator",
    "describe_files",
]
