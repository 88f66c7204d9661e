from diffreduce.core.exceptions.errors import (
    ConfigurationError,
    DiffReduceError,
    FilterError,
    FilterResponseError,
    FilterTimeoutError,
    GenerationAuthenticationError,
    GenerationError,
    GenerationRateLimitError,
    GenerationTimeoutError,
    ModelNotFoundError,
)

__all__ = [
    "DiffReduceError",
    "ConfigurationError",
    "GenerationError",
    "GenerationAuthenticationError",
    "GenerationRateLimitError",
    "GenerationTimeoutError",
    "ModelNotFoundError",
    "FilterError",
    "FilterTimeoutError",
    "FilterResponseError",
]
