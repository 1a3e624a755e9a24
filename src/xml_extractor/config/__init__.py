from .settings import (
    Config,
    ExtractionConfig,
    LoggingConfig,
    ParserOptions,
    config,
    get_config,
    reload_config,
)

__all__ = [
    "Config",
    "ExtractionConfig",
    "LoggingConfig",
    "ParserOptions",
    "config",
    "get_config",
    "reload_config",
]
