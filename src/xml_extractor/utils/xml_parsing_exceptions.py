"""
Custom exceptions for XML extraction and parsing failures.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ..services.xml_service.xml_issue import ExtractionError


class XMLExtractionError(Exception):
    """Base exception for every failure raised by the extractor."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidInputError(XMLExtractionError, ValueError):
    """Exception raised when the input is missing or is not a string."""

    def __init__(self, message: str = "Input must be a non-empty string"):
        super().__init__(message)


class InvalidOptionsError(XMLExtractionError, ValueError):
    """Exception raised for unknown or mistyped parser options."""


class FragmentParseError(XMLExtractionError):
    """Exception raised when a single XML fragment cannot be turned into a value.

    Raised by the validation, parsing and simplification steps and caught by
    the extraction loop, which records it and moves on to the next fragment.
    """

    def __init__(
        self,
        message: str,
        xml_snippet: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.xml_snippet = xml_snippet
        self.cause = cause
        super().__init__(message)


class AllFragmentsFailedError(XMLExtractionError):
    """Exception raised when fragments were found but none of them parsed."""

    def __init__(self, errors: List["ExtractionError"]):
        self.errors = list(errors)
        details = "\n".join(
            f"Error {index}: {error.message} (Snippet: {error.xml_snippet})"
            for index, error in enumerate(self.errors, start=1)
        )
        super().__init__(f"Failed to parse any XML blocks:\n{details}")
