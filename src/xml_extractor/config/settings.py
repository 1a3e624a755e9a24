"""
Configuration management for the XML extractor.
Centralizes parser defaults, extraction limits and logging settings.
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Mapping, Optional, Tuple, Union

from ..utils.xml_parsing_exceptions import InvalidOptionsError

CONFIG_ENV_VAR = "XML_EXTRACTOR_CONFIG"

# Fence markers recognised by the block finder
FENCE_OPEN_MARKER = "```xml"
FENCE_CLOSE_MARKER = "```"

DEFAULT_MAX_DEPTH = 200
DEFAULT_SNIPPET_LENGTH = 50


@dataclass(frozen=True)
class ParserOptions:
    """Options handed to the underlying XML-to-dict parser."""

    attribute_prefix: str = "@_"
    text_key: str = "#text"
    ignore_attributes: bool = False
    allow_boolean_attributes: bool = True
    parse_attribute_value: bool = False
    trim_values: bool = False  # Keep whitespace inside text values
    ignore_declaration: bool = True
    parse_tag_value: bool = True
    stop_nodes: Tuple[str, ...] = ("*.#text",)

    def __post_init__(self) -> None:
        for option in fields(self):
            value = getattr(self, option.name)
            if option.name == "stop_nodes":
                if isinstance(value, str) or not all(
                    isinstance(node, str) for node in value
                ):
                    raise InvalidOptionsError(
                        "Option 'stop_nodes' must be a sequence of strings"
                    )
                # Lists from JSON or callers are normalised to a hashable tuple
                object.__setattr__(self, "stop_nodes", tuple(value))
            elif not isinstance(value, option.type):
                raise InvalidOptionsError(
                    f"Option '{option.name}' must be of type {option.type.__name__}, "
                    f"got {type(value).__name__}"
                )
        if not self.text_key:
            raise InvalidOptionsError("Option 'text_key' cannot be empty")

    def merged(
        self, overrides: Optional[Union["ParserOptions", Mapping[str, Any]]]
    ) -> "ParserOptions":
        """Return a copy with caller-supplied options applied key by key."""
        if overrides is None:
            return self
        if isinstance(overrides, ParserOptions):
            return overrides
        if not isinstance(overrides, Mapping):
            raise InvalidOptionsError(
                f"Options must be a mapping, got {type(overrides).__name__}"
            )

        known = {option.name for option in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidOptionsError(f"Unknown parser option(s): {', '.join(unknown)}")

        return replace(self, **dict(overrides))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"


@dataclass
class ExtractionConfig:
    """Extraction pipeline configuration."""

    parser: ParserOptions = field(default_factory=ParserOptions)
    max_depth: int = DEFAULT_MAX_DEPTH  # Simplifier recursion guard
    snippet_length: int = DEFAULT_SNIPPET_LENGTH
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        if self.max_depth <= 0:
            raise ValueError("max_depth must be > 0")
        if self.snippet_length <= 0:
            raise ValueError("snippet_length must be > 0")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["parser"]["stop_nodes"] = list(self.parser.stop_nodes)
        return data


class Config:
    """Main configuration class."""

    def __init__(self, config_file: Optional[str] = None):
        """Initialize configuration from a JSON file, or from defaults."""
        self.config_file = config_file or os.getenv(CONFIG_ENV_VAR)

        if self.config_file:
            self.extraction = self._load_config()
        else:
            self.extraction = ExtractionConfig()

    @classmethod
    def load(cls, path: str) -> "Config":
        return cls(config_file=path)

    def _load_config(self) -> ExtractionConfig:
        """Load configuration from JSON file."""
        if not os.path.exists(self.config_file):
            raise ValueError(
                f"Failed to load config file {self.config_file}: file not found. "
                f"Unset {CONFIG_ENV_VAR} to use the built-in defaults."
            )

        try:
            with open(self.config_file, "r") as f:
                config_data = json.load(f)

            parser = ParserOptions().merged(config_data.get("parser", {}))
            logging_config = LoggingConfig(**config_data.get("logging", {}))
            extraction_config = config_data.get("extraction", {})

            return ExtractionConfig(
                parser=parser, logging=logging_config, **extraction_config
            )
        except Exception as e:
            raise ValueError(f"Failed to load config file {self.config_file}: {e}")


# Global configuration instance (lazy initialization)
_config_instance = None


def get_config(force_reload: bool = False) -> Config:
    """Get the global configuration instance."""
    global _config_instance
    if _config_instance is None or force_reload:
        _config_instance = Config()
    return _config_instance


def reload_config() -> None:
    """Reload the configuration by resetting the global instance."""
    global _config_instance
    _config_instance = None
    get_config(force_reload=True)


# Create a lazy config object
class _ConfigProxy:
    def __getattr__(self, name):
        return getattr(get_config(), name)


config = _ConfigProxy()
