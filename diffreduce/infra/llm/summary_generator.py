from datetime import datetime, timedelta
from typing import NoReturn, Optional

import openai

from diffreduce.core.exceptions import (
    GenerationAuthenticationError,
    GenerationError,
    GenerationRateLimitError,
    GenerationTimeoutError,
    ModelNotFoundError,
)
from diffreduce.core.pipeline.prompts import language_name
from diffreduce.core.ports.clock import Clock
from diffreduce.core.ports.logger import Logger
from diffreduce.core.ports.summary_generator import SummaryGenerator
from diffreduce.infra.llm.client import LLMClient


def build_system_prompt(language: str, commit_format: str) -> str:
    lines = [
        "You write git commit messages from code changes.",
        "Describe what changed and why, concisely and accurately.",
    ]
    if commit_format == "conventional":
        lines.append(
            "Use the Conventional Commits format: type(scope): subject, "
            "followed by an optional body."
        )
    lines.append(f"Write in {language_name(language)}.")
    return "\n".join(lines)


class OpenAISummaryGenerator(SummaryGenerator):
    """Summary generator backed by an OpenAI-compatible chat completions API.

    Calls without ``model_id`` use the primary model. The underlying
    client is thread-safe, so the map stage may call this concurrently.
    """

    def __init__(
        self,
        client: LLMClient,
        logger: Logger,
        clock: Clock,
        *,
        model: str,
        language: str = "en",
        commit_format: str = "conventional",
        max_tokens: int = 2000,
        temperature: float = 0.7,
    ) -> None:
        self._client = client
        self._logger = logger
        self._clock = clock
        self._model = model
        self._system_prompt = build_system_prompt(language, commit_format)
        self._max_tokens = max_tokens
        self._temperature = temperature

    def generate_summary(self, prompt: str, *, model_id: Optional[str] = None) -> str:
        model = model_id or self._model
        self._logger.debug("Requesting completion", model=model, prompt_length=len(prompt))
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": self._system_prompt},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except openai.APIError as error:
            self._translate_exception("Completion request failed", error, model)

        if not response.choices:
            raise GenerationError(f"model {model} returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise GenerationError(f"model {model} returned an empty message")
        return content.strip()

    def _translate_exception(
        self, message: str, error: openai.APIError, model: str
    ) -> NoReturn:
        if isinstance(error, openai.AuthenticationError):
            raise GenerationAuthenticationError(message) from error
        if isinstance(error, openai.NotFoundError):
            raise ModelNotFoundError(f"{message}: model {model} not found", model) from error
        if isinstance(error, openai.RateLimitError):
            raise GenerationRateLimitError(
                message, self._retry_after(error.response.headers)
            ) from error
        if isinstance(error, openai.APITimeoutError):
            raise GenerationTimeoutError(message) from error
        raise GenerationError(f"{message}: {error}") from error

    def _retry_after(self, headers) -> Optional[datetime]:  # noqa: ANN001
        value = headers.get("retry-after") if headers else None
        if value is None:
            return None
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return None
        return self._clock.now() + timedelta(seconds=seconds)
