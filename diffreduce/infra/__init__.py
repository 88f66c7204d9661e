from diffreduce.infra.clock import SystemClock
from diffreduce.infra.diff import parse_unified_diff
from diffreduce.infra.feedback import LoggerFeedback
from diffreduce.infra.llm import LLMClient, OpenAISummaryGenerator
from diffreduce.infra.logging import ConsoleLogger, LogfireLogger, configure_logfire

__all__ = [
    'ConsoleLogger',
    'LogfireLogger',
    'configure_logfire',
    'SystemClock',
    'LLMClient',
    'OpenAISummaryGenerator',
    'LoggerFeedback',
    'parse_unified_diff',
]
