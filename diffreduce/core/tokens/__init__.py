from diffreduce.core.tokens.estimator import LimitInfo, TokenEstimator
from diffreduce.core.tokens.limits import (
    DEFAULT_SAFETY_MARGIN_PERCENT,
    DEFAULT_TOKEN_LIMIT,
    MODEL_TOKEN_LIMITS,
)

__all__ = [
    "TokenEstimator",
    "LimitInfo",
    "MODEL_TOKEN_LIMITS",
    "DEFAULT_TOKEN_LIMIT",
    "DEFAULT_SAFETY_MARGIN_PERCENT",
]
