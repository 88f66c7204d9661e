from types import MappingProxyType
from typing import Mapping

# Per-call cost relative to a full-size primary model.
RELATIVE_MODEL_COSTS: Mapping[str, float] = MappingProxyType(
    {
        'gpt-4o-mini': 0.1,
        'gemini-1.5-flash': 0.05,
        'gpt-3.5-turbo': 0.05,
    }
)
DEFAULT_RELATIVE_COST = 1.0


def relative_cost(model_id: str) -> float:
    return RELATIVE_MODEL_COSTS.get(model_id.lower(), DEFAULT_RELATIVE_COST)
