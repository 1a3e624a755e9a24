import re
from typing import Any, Dict, Optional, Tuple
from xml.parsers.expat import ExpatError

import xmltodict
from loguru import logger

from ...config.settings import ParserOptions
from ...utils.xml_parsing_exceptions import FragmentParseError


class XMLParser:
    """Turns one well-formed XML fragment into an xmltodict node tree."""

    # Lets a fragment hold several top-level elements, and prose around them
    WRAPPER_TAG = "xml_extractor_fragment"

    DECLARATION_PATTERN = re.compile(r"^\s*<\?xml[\s\S]*?\?>")
    PSEUDO_ATTRIBUTE_PATTERN = re.compile(r"""(\w+)\s*=\s*["']([^"']*)["']""")
    # Quoted attribute values may contain '>'
    ATTRIBUTE_RUN = r"""(?:"[^"]*"|'[^']*'|[^<>"'])"""
    START_TAG_PATTERN = re.compile(rf"<([A-Za-z_][\w.:-]*)(\s{ATTRIBUTE_RUN}*?)?(/?)>")
    CDATA_SECTION_PATTERN = re.compile(r"(<!\[CDATA\[[\s\S]*?\]\]>)")
    ATTRIBUTE_PATTERN = re.compile(
        r"""([^\s=/>"']+)(\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'>/=]+))?"""
    )
    INT_PATTERN = re.compile(r"^[+-]?(?:0|[1-9]\d*)$")
    FLOAT_PATTERN = re.compile(
        r"^[+-]?(?:(?:0|[1-9]\d*)\.\d+|(?:0|[1-9]\d*)(?:\.\d+)?[eE][+-]?\d+)$"
    )

    # Placeholder value for attributes written without one, e.g. <input checked/>
    BOOLEAN_ATTRIBUTE_MARKER = "__xml_extractor_boolean_attribute__"

    def __init__(self, options: Optional[ParserOptions] = None):
        self.options = options or ParserOptions()

    def parse_single_xml_block(self, xml_block: str) -> Dict[str, Any]:
        """
        Parse a single XML block.

        Top-level elements become the keys of the returned mapping; character
        data between them is dropped.

        Raises:
            FragmentParseError: If the parser rejects the block
        """
        options = self.options
        declaration = self.DECLARATION_PATTERN.match(xml_block)
        if declaration:
            xml_block = xml_block[declaration.end():]
        prepared = self._prepare(xml_block)
        wrapped = f"<{self.WRAPPER_TAG}>{prepared}</{self.WRAPPER_TAG}>"

        try:
            parsed = xmltodict.parse(
                wrapped,
                attr_prefix=options.attribute_prefix,
                cdata_key=options.text_key,
                xml_attribs=not options.ignore_attributes,
                strip_whitespace=options.trim_values,
                postprocessor=self._postprocess,
            )
        except (ExpatError, ValueError) as e:
            logger.debug(f"xmltodict rejected XML block: {e}")
            raise FragmentParseError(f"XML parsing failed: {e}", cause=e) from e

        root = parsed.get(self.WRAPPER_TAG)
        if not isinstance(root, dict):
            # Only text, or nothing at all, between the wrapper tags
            return {}

        root.pop(options.text_key, None)
        if declaration and not options.ignore_declaration:
            root = {"?xml": self._declaration_to_dict(declaration.group(0)), **root}
        return root

    def _prepare(self, xml_block: str) -> str:
        options = self.options

        if options.allow_boolean_attributes and not options.ignore_attributes:
            xml_block = self._outside_cdata(
                xml_block,
                lambda markup: self.START_TAG_PATTERN.sub(self._fill_boolean_attributes, markup),
            )

        for tag_name in self._stop_node_names():
            xml_block = self._wrap_stop_node(xml_block, tag_name)

        return xml_block

    def _outside_cdata(self, xml_block: str, rewrite) -> str:
        """Apply a markup rewrite everywhere except inside CDATA sections."""
        parts = self.CDATA_SECTION_PATTERN.split(xml_block)
        # split() with a capturing group puts CDATA sections at odd indices
        return "".join(
            part if index % 2 else rewrite(part) for index, part in enumerate(parts)
        )

    def _declaration_to_dict(self, declaration: str) -> Dict[str, Any]:
        prefix = self.options.attribute_prefix
        return {
            f"{prefix}{name}": value
            for name, value in self.PSEUDO_ATTRIBUTE_PATTERN.findall(declaration)
        }

    def _fill_boolean_attributes(self, match: re.Match) -> str:
        tag_name, attributes, self_closing = match.groups()
        if not attributes or not attributes.strip():
            return match.group(0)

        filled = self.ATTRIBUTE_PATTERN.sub(
            lambda m: m.group(0) if m.group(2) else f'{m.group(1)}="{self.BOOLEAN_ATTRIBUTE_MARKER}"',
            attributes,
        )
        return f"<{tag_name}{filled}{self_closing}>"

    def _stop_node_names(self) -> Tuple[str, ...]:
        """Element names from stop_nodes patterns such as 'script' or '*.script'."""
        names = []
        for node in self.options.stop_nodes:
            name = node.split(".")[-1] if node.startswith("*.") else node
            # '#text' and other non-element keys never match a tag
            if re.match(r"^[A-Za-z_][\w:-]*$", name):
                names.append(name)
        return tuple(names)

    def _wrap_stop_node(self, xml_block: str, tag_name: str) -> str:
        """Wrap a stop node's inner markup in CDATA so it stays raw text."""
        pattern = re.compile(
            rf"(<{re.escape(tag_name)}(?:\s{self.ATTRIBUTE_RUN}*)?(?<!/)>)([\s\S]*?)(</{re.escape(tag_name)}\s*>)"
        )

        def wrap(match: re.Match) -> str:
            opening_tag, content, closing_tag = match.groups()
            if "<" not in content or "<![CDATA[" in content or "]]>" in content:
                return match.group(0)
            return f"{opening_tag}<![CDATA[{content}]]>{closing_tag}"

        return pattern.sub(wrap, xml_block)

    def _postprocess(self, path, key: str, value: Any) -> Tuple[str, Any]:
        """xmltodict hook: restore boolean attributes and type scalar values."""
        options = self.options
        is_attribute = key.startswith(options.attribute_prefix) and bool(
            options.attribute_prefix
        )

        if is_attribute:
            if value == self.BOOLEAN_ATTRIBUTE_MARKER:
                return key, True
            if options.parse_attribute_value:
                return key, self.parse_value(value)
            return key, value

        if options.parse_tag_value and isinstance(value, str):
            return key, self.parse_value(value)
        return key, value

    def parse_value(self, value: Any) -> Any:
        """Convert text to int or float when the conversion is unambiguous."""
        if not isinstance(value, str):
            return value
        try:
            if self.INT_PATTERN.match(value):
                return int(value)
            if self.FLOAT_PATTERN.match(value):
                return float(value)
        except ValueError:
            # int() refuses digit strings past sys.get_int_max_str_digits()
            logger.debug(f"Keeping {len(value)}-character numeric text as a string")
        return value
