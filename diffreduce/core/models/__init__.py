from diffreduce.core.models.costs import RELATIVE_MODEL_COSTS, relative_cost
from diffreduce.core.models.selector import (
    LIGHTWEIGHT_MODELS,
    LOCAL_PROVIDERS,
    ModelSelector,
)

__all__ = ['ModelSelector', 'LIGHTWEIGHT_MODELS', 'LOCAL_PROVIDERS', 'RELATIVE_MODEL_COSTS', 'relative_cost']
