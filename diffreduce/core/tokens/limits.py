from types import MappingProxyType
from typing import Mapping

DEFAULT_TOKEN_LIMIT = 4096
DEFAULT_SAFETY_MARGIN_PERCENT = 85

CHARS_PER_TOKEN = 4
WIDE_CHARS_PER_TOKEN = 1.5

MODEL_TOKEN_LIMITS: Mapping[str, int] = MappingProxyType(
    {
        # OpenAI
        'gpt-3.5-turbo': 4096,
        'gpt-3.5-turbo-16k': 16385,
        'gpt-4': 8192,
        'gpt-4-32k': 32768,
        'gpt-4-turbo': 128000,
        'gpt-4-turbo-preview': 128000,
        'gpt-4o': 128000,
        'gpt-4o-mini': 128000,
        'gpt-4.1': 1000000,
        'gpt-4.1-mini': 1000000,
        'gpt-4.1-nano': 1000000,
        # Anthropic
        'claude-3-opus': 200000,
        'claude-3-opus-20240229': 200000,
        'claude-3-sonnet': 200000,
        'claude-3-sonnet-20240229': 200000,
        'claude-3-haiku': 200000,
        'claude-3-haiku-20240307': 200000,
        'claude-3.5-sonnet': 200000,
        'claude-3.5-sonnet-20240620': 200000,
        'claude-3.5-haiku': 200000,
        # Google
        'gemini-pro': 32000,
        'gemini-1.0-pro': 32000,
        'gemini-1.5-pro': 1000000,
        'gemini-1.5-flash': 1000000,
        'gemini-2.0-flash': 1000000,
        # Alibaba Qwen
        'qwen-turbo': 8000,
        'qwen-plus': 32000,
        'qwen-max': 32000,
        'qwen-max-longcontext': 30000,
        'qwen2-72b-instruct': 32000,
        'qwen2.5-72b-instruct': 32000,
        # DeepSeek
        'deepseek-chat': 64000,
        'deepseek-coder': 64000,
        # Open weights
        'llama-3-70b': 8192,
        'llama-3.1-70b': 128000,
        'llama-3.1-405b': 128000,
        'mistral-large': 32000,
        'mixtral-8x7b': 32000,
    }
)
