from diffreduce.config.settings import (
    CommitSettings,
    FilterSettings,
    LimitSettings,
    LLMSettings,
    LoggingSettings,
    MapReduceSettings,
    Settings,
    load_settings,
    validate_settings,
)

__all__ = [
    'Settings',
    'LLMSettings',
    'LimitSettings',
    'MapReduceSettings',
    'FilterSettings',
    'CommitSettings',
    'LoggingSettings',
    'load_settings',
    'validate_settings',
]
