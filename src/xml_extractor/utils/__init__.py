from .logging import setup_logging
from .xml_parsing_exceptions import (
    AllFragmentsFailedError,
    FragmentParseError,
    InvalidInputError,
    InvalidOptionsError,
    XMLExtractionError,
)

__all__ = [
    "setup_logging",
    "AllFragmentsFailedError",
    "FragmentParseError",
    "InvalidInputError",
    "InvalidOptionsError",
    "XMLExtractionError",
]
