from datetime import datetime, timezone

import pytest

from diffreduce.core.schema.generation import GenerationOptions
from diffreduce.core.tokens import TokenEstimator
from tests.fakes import FakeClock, FakeFeedback, FakeLogger, FakeSummaryGenerator
from tests.settings import get_test_settings


@pytest.fixture
def test_settings():
    return get_test_settings()


@pytest.fixture
def logger() -> FakeLogger:
    return FakeLogger()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def feedback() -> FakeFeedback:
    return FakeFeedback()


@pytest.fixture
def generator() -> FakeSummaryGenerator:
    return FakeSummaryGenerator()


@pytest.fixture
def options() -> GenerationOptions:
    return GenerationOptions(provider="openai", model_name="gpt-4", enable_smart_filter=False)


@pytest.fixture
def small_estimator() -> TokenEstimator:
    """Effective limit of exactly 500 tokens."""
    return TokenEstimator("gpt-4", custom_token_limit=500, safety_margin_percent=100)
