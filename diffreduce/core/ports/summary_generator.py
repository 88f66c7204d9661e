from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class SummaryGenerator(Protocol):
    def generate_summary(
        self, prompt: str, *, model_id: Optional[str] = None
    ) -> str:
        ...
