import math
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from diffreduce.core.tokens.limits import (
    CHARS_PER_TOKEN,
    DEFAULT_SAFETY_MARGIN_PERCENT,
    DEFAULT_TOKEN_LIMIT,
    MODEL_TOKEN_LIMITS,
    WIDE_CHARS_PER_TOKEN,
)

# CJK ideographs, CJK punctuation and full-width forms.
_WIDE_CHAR_PATTERN = re.compile(r'[\u4e00-\u9fff\u3000-\u303f\uff00-\uffef]')


@dataclass(frozen=True, slots=True)
class LimitInfo:
    model_name: str
    raw_limit: int
    effective_limit: int
    safety_margin_percent: int
    is_custom_limit: bool


class TokenEstimator:
    """Character-based token estimate with a model-aware budget.

    Wide (CJK) characters count roughly 1.5 per token and everything else
    4 per token. This is an approximation, not a tokenizer.
    """

    def __init__(
        self,
        model_name: str,
        *,
        custom_token_limit: Optional[int] = None,
        safety_margin_percent: int = DEFAULT_SAFETY_MARGIN_PERCENT,
        model_limits: Mapping[str, int] = MODEL_TOKEN_LIMITS,
        default_limit: int = DEFAULT_TOKEN_LIMIT,
    ) -> None:
        self._model_name = model_name
        self._custom_token_limit = custom_token_limit
        self._safety_margin_percent = safety_margin_percent
        self._model_limits = model_limits
        self._default_limit = default_limit

    @property
    def model_name(self) -> str:
        return self._model_name

    def estimate(self, text: str) -> int:
        if not text:
            return 0
        wide_count = len(_WIDE_CHAR_PATTERN.findall(text))
        narrow_count = len(text) - wide_count
        return math.ceil(wide_count / WIDE_CHARS_PER_TOKEN) + math.ceil(
            narrow_count / CHARS_PER_TOKEN
        )

    def get_effective_limit(self) -> int:
        return math.floor(self._raw_limit() * self._safety_margin_percent / 100)

    def needs_split(self, text: str) -> bool:
        return self.estimate(text) > self.get_effective_limit()

    def get_model_limit(self, model_name: str) -> int:
        if model_name in self._model_limits:
            return self._model_limits[model_name]

        normalized = model_name.lower()
        if normalized:
            for key, limit in self._model_limits.items():
                candidate = key.lower()
                if candidate in normalized or normalized in candidate:
                    return limit
        return self._default_limit

    def with_model(self, model_name: str) -> 'TokenEstimator':
        return TokenEstimator(
            model_name,
            custom_token_limit=self._custom_token_limit,
            safety_margin_percent=self._safety_margin_percent,
            model_limits=self._model_limits,
            default_limit=self._default_limit,
        )

    def config_info(self) -> LimitInfo:
        return LimitInfo(
            model_name=self._model_name,
            raw_limit=self._raw_limit(),
            effective_limit=self.get_effective_limit(),
            safety_margin_percent=self._safety_margin_percent,
            is_custom_limit=self._has_custom_limit(),
        )

    def _raw_limit(self) -> int:
        if self._has_custom_limit():
            assert self._custom_token_limit is not None
            return self._custom_token_limit
        return self.get_model_limit(self._model_name)

    def _has_custom_limit(self) -> bool:
        return bool(self._custom_token_limit and self._custom_token_limit > 0)
