import re
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from diffreduce.core.models.costs import DEFAULT_RELATIVE_COST, relative_cost
from diffreduce.core.ports.feedback import FeedbackSink
from diffreduce.core.ports.logger import Logger
from diffreduce.core.schema.generation import GenerationOptions, ModelSelection

LOCAL_PROVIDERS: Tuple[str, ...] = ('ollama', 'lmstudio', 'localai', 'custom')
DEPLOYMENT_PROVIDERS: Tuple[str, ...] = ('azure', 'azureopenai', 'azure-openai')

LIGHTWEIGHT_MODELS: Mapping[str, str] = MappingProxyType(
    {
        'openai': 'gpt-4o-mini',
        'gemini': 'gemini-1.5-flash',
    }
)

# Markers only count as whole name segments; 'gemini' is not a 'mini' model.
_LIGHTWEIGHT_MARKER_PATTERN = re.compile(r'(?:^|[-_./:])(?:mini|flash|nano|haiku)(?:$|[-_./:])')

_MODEL_ID_PATTERN = re.compile(r'^[A-Za-z0-9._/-]+$')
_MIN_MODEL_ID_LENGTH = 3
_MAX_MODEL_ID_LENGTH = 100

_PROVIDER_PATTERNS: Mapping[str, 're.Pattern[str]'] = MappingProxyType(
    {
        'openai': re.compile(r'^(gpt-|text-|davinci|curie|babbage|ada)', re.IGNORECASE),
        'gemini': re.compile(r'^gemini-', re.IGNORECASE),
    }
)


class ModelSelector:
    def __init__(self, logger: Logger, feedback: Optional[FeedbackSink] = None) -> None:
        self._logger = logger
        self._feedback = feedback

    def select_map_model(self, options: GenerationOptions) -> str:
        return self.select(options).model_id

    def select(self, options: GenerationOptions) -> ModelSelection:
        requested = (options.map_model or '').strip()
        if requested:
            reason = self._rejection_reason(requested, options.provider)
            if reason is None:
                self._logger.info(
                    'Using configured map model',
                    map_model=requested,
                    provider=options.provider,
                )
                return ModelSelection(model_id=requested)
            fallback = self._downgrade(options.model_name, options.provider)
            fallback = self._ensure_valid(fallback, options)
            self._report_fallback(requested, fallback, reason)
            return ModelSelection(model_id=fallback, fallback_reason=reason)

        downgraded = self._downgrade(options.model_name, options.provider)
        if downgraded == options.model_name:
            reason = self._primary_kept_reason(options)
            if reason is None:
                self._logger.info(
                    'Primary model is already lightweight',
                    model=options.model_name,
                    provider=options.provider,
                )
                return ModelSelection(model_id=options.model_name)
            self._report_fallback(options.model_name, options.model_name, reason)
            return ModelSelection(model_id=options.model_name, fallback_reason=reason)

        selected = self._ensure_valid(downgraded, options)
        if selected != downgraded:
            reason = f'lightweight model {downgraded} failed validation'
            self._report_fallback(downgraded, selected, reason)
            return ModelSelection(model_id=selected, fallback_reason=reason)

        self._logger.info(
            'Downgraded map model',
            primary_model=options.model_name,
            map_model=downgraded,
            provider=options.provider,
        )
        return ModelSelection(model_id=downgraded)

    def validate_model(self, model_id: Optional[str], provider: Optional[str] = None) -> bool:
        if not isinstance(model_id, str):
            self._logger.warning('Model id is not a string', model_id=repr(model_id))
            return False
        reason = self._rejection_reason(model_id.strip(), provider)
        if reason is not None:
            self._logger.warning('Model validation failed', model_id=model_id, reason=reason)
            return False
        self._logger.debug('Model validated', model_id=model_id, provider=provider)
        return True

    def is_local_provider(self, provider: str) -> bool:
        return provider.lower() in LOCAL_PROVIDERS

    def is_lightweight(self, model_id: str) -> bool:
        lowered = model_id.lower()
        if relative_cost(lowered) < DEFAULT_RELATIVE_COST:
            return True
        return bool(_LIGHTWEIGHT_MARKER_PATTERN.search(lowered))

    def _rejection_reason(self, model_id: str, provider: Optional[str]) -> Optional[str]:
        if not model_id:
            return 'model id is empty'
        if not _MODEL_ID_PATTERN.match(model_id):
            return (
                f'model id {model_id!r} may only contain letters, digits, '
                "'-', '_', '.' and '/'"
            )
        if not _MIN_MODEL_ID_LENGTH <= len(model_id) <= _MAX_MODEL_ID_LENGTH:
            return (
                f'model id length {len(model_id)} is outside '
                f'{_MIN_MODEL_ID_LENGTH}-{_MAX_MODEL_ID_LENGTH}'
            )
        if provider and not self._matches_provider(model_id, provider):
            return f'model {model_id} does not belong to provider {provider}'
        return None

    def _matches_provider(self, model_id: str, provider: str) -> bool:
        normalized = provider.lower()
        if normalized in DEPLOYMENT_PROVIDERS or self.is_local_provider(normalized):
            return True
        pattern = _PROVIDER_PATTERNS.get(normalized)
        if pattern is None:
            return True
        return bool(pattern.match(model_id))

    def _downgrade(self, primary_model: str, provider: str) -> str:
        if self.is_local_provider(provider):
            return primary_model

        lightweight = LIGHTWEIGHT_MODELS.get(provider.lower())
        if lightweight is None:
            return primary_model

        if self.is_lightweight(primary_model):
            return primary_model
        return lightweight

    def _primary_kept_reason(self, options: GenerationOptions) -> Optional[str]:
        if self.is_local_provider(options.provider):
            return f'local provider {options.provider} keeps the primary model'
        if options.provider.lower() not in LIGHTWEIGHT_MODELS:
            return f'no lightweight model known for provider {options.provider}'
        return None

    def _ensure_valid(self, model_id: str, options: GenerationOptions) -> str:
        if model_id == options.model_name:
            return model_id
        if self._rejection_reason(model_id, options.provider) is None:
            return model_id
        return options.model_name

    def _report_fallback(self, attempted: str, fallback: str, reason: str) -> None:
        self._logger.warning(
            'Map model fallback',
            attempted_model=attempted,
            fallback_model=fallback,
            reason=reason,
        )
        if self._feedback is not None:
            self._feedback.model_fallback(attempted, fallback, reason)
