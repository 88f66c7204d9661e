import os
from dataclasses import dataclass
from typing import Optional

from diffreduce.core.exceptions import ConfigurationError
from diffreduce.core.schema.chunk import ProcessConfig
from diffreduce.core.schema.generation import GenerationOptions

_TRUE_VALUES = ("TRUE", "1", "YES", "ON")


@dataclass(frozen=True, slots=True)
class LLMSettings:
    provider: str
    model: str
    api_key: Optional[str]
    base_url: Optional[str]
    map_model: Optional[str]
    request_timeout: float
    max_tokens: int
    temperature: float


@dataclass(frozen=True, slots=True)
class LimitSettings:
    custom_token_limit: Optional[int]
    safety_margin_percent: int


@dataclass(frozen=True, slots=True)
class MapReduceSettings:
    enabled: bool
    max_concurrent_requests: int
    max_retries: int
    initial_retry_delay: float


@dataclass(frozen=True, slots=True)
class FilterSettings:
    enabled: bool
    min_files: int
    max_files: int
    timeout: float


@dataclass(frozen=True, slots=True)
class CommitSettings:
    language: str
    commit_format: str


@dataclass(frozen=True, slots=True)
class LoggingSettings:
    backend: str
    name: str
    logfire_token: Optional[str]


@dataclass(frozen=True, slots=True)
class Settings:
    llm: LLMSettings
    limits: LimitSettings
    map_reduce: MapReduceSettings
    filter: FilterSettings
    commit: CommitSettings
    logging: LoggingSettings

    def generation_options(self) -> GenerationOptions:
        return GenerationOptions(
            provider=self.llm.provider,
            model_name=self.llm.model,
            map_model=self.llm.map_model,
            language=self.commit.language,
            commit_format=self.commit.commit_format,
            enable_smart_filter=self.filter.enabled,
        )

    def process_config(self) -> ProcessConfig:
        return ProcessConfig(
            concurrency=self.map_reduce.max_concurrent_requests,
            max_retries=self.map_reduce.max_retries,
            initial_retry_delay=self.map_reduce.initial_retry_delay,
        )


def load_settings() -> Settings:
    from dotenv import load_dotenv

    load_dotenv()

    settings = Settings(
        llm=LLMSettings(
            provider=_ge_env_or_default("DIFFREDUCE_PROVIDER", "openai").lower(),
            model=_ge_env_or_default("DIFFREDUCE_MODEL", "gpt-4"),
            api_key=_ge_env_or_default(
                "DIFFREDUCE_API_KEY", _ge_env_or_default("OPENAI_API_KEY")
            ),
            base_url=_ge_env_or_default("DIFFREDUCE_BASE_URL"),
            map_model=_ge_env_or_default("DIFFREDUCE_MAP_MODEL"),
            request_timeout=_env_float("DIFFREDUCE_REQUEST_TIMEOUT", 30.0),
            max_tokens=_env_int("DIFFREDUCE_MAX_TOKENS", 2000),
            temperature=_env_float("DIFFREDUCE_TEMPERATURE", 0.7),
        ),
        limits=LimitSettings(
            custom_token_limit=_env_optional_int("DIFFREDUCE_CUSTOM_TOKEN_LIMIT"),
            safety_margin_percent=_env_int("DIFFREDUCE_SAFETY_MARGIN_PERCENT", 85),
        ),
        map_reduce=MapReduceSettings(
            enabled=_env_bool("DIFFREDUCE_ENABLE_MAP_REDUCE", True),
            max_concurrent_requests=_env_int("DIFFREDUCE_MAX_CONCURRENT_REQUESTS", 5),
            max_retries=_env_int("DIFFREDUCE_MAX_RETRIES", 3),
            initial_retry_delay=_env_float("DIFFREDUCE_INITIAL_RETRY_DELAY", 1.0),
        ),
        filter=FilterSettings(
            enabled=_env_bool("DIFFREDUCE_ENABLE_SMART_FILTER", True),
            min_files=_env_int("DIFFREDUCE_FILTER_MIN_FILES", 3),
            max_files=_env_int("DIFFREDUCE_FILTER_MAX_FILES", 500),
            timeout=_env_float("DIFFREDUCE_FILTER_TIMEOUT", 10.0),
        ),
        commit=CommitSettings(
            language=_ge_env_or_default("DIFFREDUCE_LANGUAGE", "en"),
            commit_format=_ge_env_or_default("DIFFREDUCE_COMMIT_FORMAT", "conventional").lower(),
        ),
        logging=LoggingSettings(
            backend=_ge_env_or_default("DIFFREDUCE_LOGGER_BACKEND", "console").lower(),
            name=_ge_env_or_default("DIFFREDUCE_LOGGER_NAME", "diffreduce"),
            logfire_token=_ge_env_or_default("DIFFREDUCE_LOGFIRE_TOKEN"),
        ),
    )
    validate_settings(settings)
    return settings


def validate_settings(settings: Settings) -> None:
    margin = settings.limits.safety_margin_percent
    if not 1 <= margin <= 100:
        raise ConfigurationError(
            f"DIFFREDUCE_SAFETY_MARGIN_PERCENT must be between 1 and 100, got {margin}"
        )
    if settings.map_reduce.max_concurrent_requests < 1:
        raise ConfigurationError("DIFFREDUCE_MAX_CONCURRENT_REQUESTS must be at least 1")
    if settings.map_reduce.max_retries < 0:
        raise ConfigurationError("DIFFREDUCE_MAX_RETRIES must not be negative")
    if settings.map_reduce.initial_retry_delay < 0:
        raise ConfigurationError("DIFFREDUCE_INITIAL_RETRY_DELAY must not be negative")


def _ge_env_or_default(name: str, default=None):
    value = os.getenv(name)
    if not value:
        return default
    return value


def _env_int(name: str, default: int) -> int:
    return int(_parse(name, int, default))


def _env_optional_int(name: str) -> Optional[int]:
    value = _ge_env_or_default(name)
    if value is None:
        return None
    return _parse(name, int, None)


def _env_float(name: str, default: float) -> float:
    return float(_parse(name, float, default))


def _env_bool(name: str, default: bool) -> bool:
    value = _ge_env_or_default(name)
    if value is None:
        return default
    return value.strip().upper() in _TRUE_VALUES


def _parse(name: str, cast, default):
    value = _ge_env_or_default(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError as error:
        raise ConfigurationError(f"{name} has an invalid value: {value!r}") from error
