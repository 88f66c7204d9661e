from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    provider: str
    model_name: str
    map_model: Optional[str] = None
    language: str = "en"
    commit_format: str = "conventional"
    enable_smart_filter: bool = True


@dataclass(frozen=True, slots=True)
class ModelSelection:
    model_id: str
    fallback_reason: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.fallback_reason is not None
