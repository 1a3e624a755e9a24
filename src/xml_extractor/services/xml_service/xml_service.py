"""
XML Service

This service extracts XML fragments embedded in free-form text (typically LLM
responses) and turns each one into a plain Python value.

Main responsibilities:
- Find fenced ```xml blocks and raw XML elements in the text
- Strip comments and processing instructions
- Check tag nesting before parsing, for predictable error messages
- Parse with xmltodict and simplify the resulting tree
- Collect per-fragment errors and decide the overall outcome once at the end
"""

from typing import Any, List, Mapping, Optional, Union

from loguru import logger

from ...config.settings import ExtractionConfig, ParserOptions, get_config
from ...utils.xml_parsing_exceptions import (
    AllFragmentsFailedError,
    FragmentParseError,
    InvalidInputError,
)
from .xml_block_finder import XMLBlockFinder
from .xml_cleaner import XMLCleaner
from .xml_issue import ExtractionError, ExtractionResult, Fragment, XMLIssue
from .xml_parser import XMLParser
from .xml_simplifier import XMLSimplifier
from .xml_validator import XMLValidator

OptionsType = Optional[Union[ParserOptions, Mapping[str, Any]]]


class XMLService:
    """Comprehensive service for XML extraction operations."""

    def __init__(
        self,
        options: OptionsType = None,
        config: Optional[ExtractionConfig] = None,
    ):
        self.config = config or get_config().extraction
        self.options = self.config.parser.merged(options)

        self.block_finder = XMLBlockFinder()
        self.cleaner = XMLCleaner()
        self.validator = XMLValidator()
        self.parser = XMLParser(self.options)
        self.simplifier = XMLSimplifier(
            text_key=self.options.text_key,
            attribute_prefix=self.options.attribute_prefix,
            max_depth=self.config.max_depth,
        )

    def extract_xml_objects(self, input_text: str) -> List[Any]:
        """
        Extract and parse every XML fragment in the input.

        Fragments that fail are skipped as long as at least one succeeds.

        Returns:
            Simplified values in fragment order; empty when the input holds no XML

        Raises:
            InvalidInputError: If the input is not a non-empty string
            AllFragmentsFailedError: If fragments were found but none parsed
        """
        result = self.extract(input_text)

        if result.all_failed:
            error = AllFragmentsFailedError(result.errors)
            logger.error(error.message)
            raise error

        if result.errors:
            logger.debug(
                f"Dropping {len(result.errors)} failed XML fragment(s) after partial success"
            )
        return result.values

    def extract(self, input_text: str) -> ExtractionResult:
        """Run the whole pipeline, returning values and per-fragment errors."""
        if not input_text or not isinstance(input_text, str):
            raise InvalidInputError()

        fragments = self.find_fragments(input_text)
        result = ExtractionResult(fragments=fragments)

        if not fragments:
            logger.debug("No XML fragments found in input")
            return result

        for index, fragment in enumerate(fragments, start=1):
            try:
                value = self._process_fragment(fragment)
            except FragmentParseError as e:
                logger.warning(f"Failed to parse XML fragment {index}: {e.message}")
                result.errors.append(
                    ExtractionError(
                        message=e.message,
                        xml_snippet=e.xml_snippet or self._snippet(fragment.text),
                        origin=fragment.origin,
                        cause=e.cause,
                    )
                )
                continue

            result.values.append(value)
            logger.debug(f"Successfully parsed XML fragment {index}")

        logger.debug(
            f"Parsed {len(result.values)} of {len(fragments)} XML fragments"
        )
        return result

    def find_fragments(self, text: str) -> List[Fragment]:
        return self.block_finder.find_fragments(text)

    def clean_fragment(self, xml_text: str) -> str:
        return self.cleaner.clean_fragment(
            xml_text, keep_declaration=not self.options.ignore_declaration
        )

    def validate_xml_structure(self, xml_text: str) -> bool:
        """Validate XML structure by checking tag matching."""
        return self.validator.validate_xml_structure(xml_text)

    def find_structure_issue(self, xml_text: str) -> Optional[XMLIssue]:
        return self.validator.find_structure_issue(xml_text)

    def parse_fragment(self, xml_text: str) -> Any:
        return self.parser.parse_single_xml_block(xml_text)

    def simplify(self, node: Any) -> Any:
        return self.simplifier.simplify(node)

    def _process_fragment(self, fragment: Fragment) -> Any:
        """Clean, validate, parse and simplify one fragment."""
        snippet = self._snippet(fragment.text)
        cleaned = self.clean_fragment(fragment.text)

        issue = self.find_structure_issue(cleaned)
        if issue is not None:
            raise FragmentParseError(
                f"XML is not well-formed: {issue.description}", xml_snippet=snippet
            )

        try:
            parsed = self.parse_fragment(cleaned)
            value = self.simplify(parsed)
        except FragmentParseError as e:
            e.xml_snippet = snippet
            raise

        if isinstance(value, dict) and not value:
            raise FragmentParseError(
                "Parsed XML produced an empty object", xml_snippet=snippet
            )
        return value

    def _snippet(self, xml_text: str) -> str:
        limit = self.config.snippet_length
        return f"{xml_text[:limit]}..." if len(xml_text) > limit else xml_text


def extract_xml_objects(input_text: str, options: OptionsType = None) -> List[Any]:
    """Extract and parse all XML blocks from a string.

    Looks for ```xml ... ``` blocks, then for raw XML elements outside them.

    Args:
        input_text: The input string (e.g., an AI response) to extract XML from
        options: Parser option overrides, merged over the defaults key by key

    Returns:
        List of simplified values, fenced blocks first, then raw elements

    Raises:
        InvalidInputError: If the input is not a non-empty string
        InvalidOptionsError: If an option is unknown or has the wrong type
        AllFragmentsFailedError: If XML was found but none of it could be parsed
    """
    return XMLService(options).extract_xml_objects(input_text)


async def extract_xml_objects_async(
    input_text: str, options: OptionsType = None
) -> List[Any]:
    """Coroutine form of extract_xml_objects; completes without suspending."""
    return extract_xml_objects(input_text, options)
