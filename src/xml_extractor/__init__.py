"""
XML Extractor - finds XML embedded in free-form text and returns it as plain Python values.
"""

__version__ = "1.0.3"

from .config.settings import (
    Config,
    ExtractionConfig,
    LoggingConfig,
    ParserOptions,
    get_config,
    reload_config,
)
from .services.xml_service import (
    ExtractionError,
    ExtractionResult,
    Fragment,
    FragmentOrigin,
    XMLService,
    extract_xml_objects,
    extract_xml_objects_async,
)
from .utils.logging import setup_logging
from .utils.xml_parsing_exceptions import (
    AllFragmentsFailedError,
    FragmentParseError,
    InvalidInputError,
    InvalidOptionsError,
    XMLExtractionError,
)

__all__ = [
    "extract_xml_objects",
    "extract_xml_objects_async",
    "XMLService",
    "ExtractionError",
    "ExtractionResult",
    "Fragment",
    "FragmentOrigin",
    "Config",
    "ExtractionConfig",
    "LoggingConfig",
    "ParserOptions",
    "get_config",
    "reload_config",
    "setup_logging",
    "AllFragmentsFailedError",
    "FragmentParseError",
    "InvalidInputError",
    "InvalidOptionsError",
    "XMLExtractionError",
]
