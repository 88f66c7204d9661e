from datetime import datetime
from typing import Optional


class DiffReduceError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(DiffReduceError):
    pass


class GenerationError(DiffReduceError):
    pass


class GenerationAuthenticationError(GenerationError):
    pass


class GenerationRateLimitError(GenerationError):
    def __init__(self, message: str, retry_after: Optional[datetime]) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class GenerationTimeoutError(GenerationError):
    pass


class ModelNotFoundError(GenerationError):
    def __init__(self, message: str, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(message)


class FilterError(DiffReduceError):
    pass


class FilterTimeoutError(FilterError):
    def __init__(self, message: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(message)


class FilterResponseError(FilterError):
    pass
