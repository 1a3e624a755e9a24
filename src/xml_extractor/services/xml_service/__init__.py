"""
XML Service Module

This module extracts XML embedded in LLM responses and other free-form text:
- Finding ```xml fenced blocks and raw XML elements
- Stripping comments and processing instructions
- Checking tag nesting before parsing
- Parsing with xmltodict and simplifying the result into plain values

Main Components:
- XMLService: Main service class for all extraction operations
- extract_xml_objects: One-call entry point

Usage:
    from xml_extractor.services.xml_service import XMLService

    xml_service = XMLService({"attribute_prefix": "@"})
    values = xml_service.extract_xml_objects(response_text)

    # Inspect fragments that failed without raising
    result = xml_service.extract(response_text)
    for error in result.errors:
        print(error.message, error.xml_snippet)
"""

from .xml_issue import (
    ExtractionError,
    ExtractionResult,
    Fragment,
    FragmentOrigin,
    XMLIssue,
)
from .xml_service import XMLService, extract_xml_objects, extract_xml_objects_async

__all__ = [
    "ExtractionError",
    "ExtractionResult",
    "Fragment",
    "FragmentOrigin",
    "XMLIssue",
    "XMLService",
    "extract_xml_objects",
    "extract_xml_objects_async",
]
