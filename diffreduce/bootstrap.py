import sys

from diffreduce.config import Settings, load_settings
from diffreduce.core.chunkers import DiffSplitter
from diffreduce.core.exceptions import DiffReduceError
from diffreduce.core.filters import SmartDiffFilter
from diffreduce.core.models import ModelSelector
from diffreduce.core.pipeline import ChunkProcessor, LargeDiffHandler, SummaryMerger
from diffreduce.core.ports import Clock, Logger, SummaryGenerator
from diffreduce.core.tokens import TokenEstimator
from diffreduce.infra import (
    ConsoleLogger,
    LLMClient,
    LogfireLogger,
    LoggerFeedback,
    OpenAISummaryGenerator,
    SystemClock,
    configure_logfire,
    parse_unified_diff,
)


def main() -> None:
    settings = load_settings()
    logger = _build_logger(settings)
    clock = SystemClock()

    diff_text = sys.stdin.read()
    changes = parse_unified_diff(diff_text)
    if not changes:
        logger.error('No file changes found on stdin')
        sys.exit(1)

    if not settings.llm.api_key:
        raise ValueError(
            'DIFFREDUCE_API_KEY (or OPENAI_API_KEY) must be set to reach the model'
        )

    with LLMClient(
        settings.llm.api_key,
        base_url=settings.llm.base_url,
        timeout=settings.llm.request_timeout,
    ) as client:
        generator = OpenAISummaryGenerator(
            client,
            logger,
            clock,
            model=settings.llm.model,
            language=settings.commit.language,
            commit_format=settings.commit.commit_format,
            max_tokens=settings.llm.max_tokens,
            temperature=settings.llm.temperature,
        )
        handler = build_handler(settings, generator, logger, clock)
        try:
            message = handler.handle(changes, settings.generation_options())
        except DiffReduceError as error:
            logger.error('Commit message generation failed', error=error.message)
            sys.exit(1)
    print(message.rstrip("\n"))


def build_handler(
    settings: Settings,
    generator: SummaryGenerator,
    logger: Logger,
    clock: Clock,
) -> LargeDiffHandler:
    feedback = LoggerFeedback(logger)
    estimator = TokenEstimator(
        settings.llm.model,
        custom_token_limit=settings.limits.custom_token_limit,
        safety_margin_percent=settings.limits.safety_margin_percent,
    )
    model_selector = ModelSelector(logger, feedback)
    noise_filter = SmartDiffFilter(
        generator,
        logger,
        min_files_threshold=settings.filter.min_files,
        max_file_list_size=settings.filter.max_files,
        timeout=settings.filter.timeout,
        model_id=ModelSelector(logger).select_map_model(settings.generation_options()),
    )
    return LargeDiffHandler(
        estimator=estimator,
        splitter=DiffSplitter(estimator),
        processor=ChunkProcessor(generator, logger, clock),
        merger=SummaryMerger(estimator, generator, logger),
        generator=generator,
        logger=logger,
        clock=clock,
        enable_map_reduce=settings.map_reduce.enabled,
        process_config=settings.process_config(),
        noise_filter=noise_filter,
        feedback=feedback,
        model_selector=model_selector,
    )


def _build_logger(settings: Settings):
    if settings.logging.backend == 'console':
        return ConsoleLogger(settings.logging.name)
    if settings.logging.backend == 'logfire':
        if not settings.logging.logfire_token:
            raise ValueError(
                'Logfire backend selected but DIFFREDUCE_LOGFIRE_TOKEN is not set'
            )
        configure_logfire(settings.logging.logfire_token)
        return LogfireLogger(settings.logging.name)
    raise ValueError(f'Unknown logging backend {settings.logging.backend}')


if __name__ == '__main__':
    main()
