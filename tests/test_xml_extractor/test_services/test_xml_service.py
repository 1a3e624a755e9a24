"""End-to-end tests for extracting XML objects from free-form text."""

import asyncio

import pytest

from xml_extractor.config.settings import ExtractionConfig, ParserOptions
from xml_extractor.services.xml_service import (
    FragmentOrigin,
    XMLService,
    extract_xml_objects,
    extract_xml_objects_async,
)
from xml_extractor.utils.xml_parsing_exceptions import (
    AllFragmentsFailedError,
    InvalidInputError,
    InvalidOptionsError,
)


FENCE = "```"


def fenced(*bodies):
    return "\n".join(f"{FENCE}xml\n{body}\n{FENCE}" for body in bodies)


def generate_nested_xml(depth):
    xml = "<root>"
    for i in range(depth):
        xml += f"<level{i}><item>value{i}</item>"
    for i in range(depth - 1, -1, -1):
        xml += f"</level{i}>"
    return xml + "</root>"


class TestBasicExtraction:
    """Test fenced, raw and mixed inputs."""

    def test_raw_xml(self):
        """Test a bare element is extracted."""
        assert extract_xml_objects("<person><name>John</name></person>") == [
            {"person": {"name": "John"}}
        ]

    def test_multiple_fenced_blocks(self):
        """Test every fenced block is parsed, numbers typed."""
        text = f"""
      Here's some XML:
      {FENCE}xml
      <person><name>John</name></person>
      {FENCE}
      And another:
      {FENCE}xml
      <book><title>1984</title></book>
      {FENCE}
    """
        assert extract_xml_objects(text) == [
            {"person": {"name": "John"}},
            {"book": {"title": 1984}},
        ]

    def test_multiple_raw_elements(self):
        """Test raw elements are returned in document order."""
        text = """
      <person><name>John</name></person>
      <book><title>1984</title></book>
    """
        assert extract_xml_objects(text) == [
            {"person": {"name": "John"}},
            {"book": {"title": 1984}},
        ]

    def test_mixed_fenced_and_raw(self):
        """Test a fenced block and a raw element in the same text."""
        text = f"""
      Some text.
      {FENCE}xml
      <person><name>John</name></person>
      {FENCE}
      More text.
      <book><title>1984</title></book>
    """
        assert extract_xml_objects(text) == [
            {"person": {"name": "John"}},
            {"book": {"title": 1984}},
        ]

    def test_fenced_results_precede_raw_results(self):
        """Test ordering does not follow source position across kinds."""
        text = f"<first>1</first>\n{fenced('<second>2</second>')}"

        assert extract_xml_objects(text) == [{"second": 2}, {"first": 1}]

    def test_attributes(self):
        """Test attributes are merged next to child elements."""
        assert extract_xml_objects('<person id="123"><name>John</name></person>') == [
            {"person": {"@_id": "123", "name": "John"}}
        ]

    @pytest.mark.parametrize("count", [1, 2, 5])
    def test_fenced_block_count(self, count):
        """Test N well-formed blocks give N results in order."""
        bodies = [f"<item><n>{i}</n></item>" for i in range(count)]

        assert extract_xml_objects(fenced(*bodies)) == [
            {"item": {"n": i}} for i in range(count)
        ]


class TestEdgeCases:
    """Test comments, PIs, self-closing tags and mixed content."""

    def test_comments(self):
        """Test comments inside a block are ignored."""
        text = fenced("<!-- User info -->\n<person><!-- Name --><name>John</name></person>")
        assert extract_xml_objects(text) == [{"person": {"name": "John"}}]

    def test_processing_instructions(self):
        """Test the declaration and stylesheet PI are ignored."""
        text = fenced(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<?xml-stylesheet type="text/xsl" href="style.xsl"?>\n'
            "<person><name>John</name></person>"
        )
        assert extract_xml_objects(text) == [{"person": {"name": "John"}}]

    def test_pretty_printed_whitespace_is_kept(self):
        """Test indentation between children stays as text when values are not trimmed."""
        text = fenced("<person>\n  <name>John</name>\n</person>")

        assert extract_xml_objects(text) == [
            {"person": {"#text": ["\n  \n"], "name": "John"}}
        ]
        assert extract_xml_objects(text, {"trim_values": True}) == [
            {"person": {"name": "John"}}
        ]

    def test_oversized_number_is_not_a_failure(self):
        """Test numeric text too long for int() is returned as a string."""
        digits = "1" * 5000
        assert extract_xml_objects(f"<a>{digits}</a>") == [{"a": digits}]

    def test_cdata_with_tag_like_text(self):
        """Test CDATA content is returned exactly as written."""
        assert extract_xml_objects("<a><![CDATA[<b x>]]></a>") == [{"a": "<b x>"}]

    def test_quoted_angle_bracket_in_attribute(self):
        """Test a '>' in an attribute value parses with the default options."""
        expected = [{"a": {"#text": ["1"], "@_t": "x>y"}}]

        assert extract_xml_objects('<a t="x>y">1</a>') == expected
        assert extract_xml_objects(
            '<a t="x>y">1</a>', {"allow_boolean_attributes": False}
        ) == expected

    def test_self_closing_tags(self):
        """Test a self-closing child with attributes."""
        text = fenced('<person><name>John</name><img src="photo.jpg"/></person>')
        assert extract_xml_objects(text) == [
            {"person": {"name": "John", "img": {"@_src": "photo.jpg"}}}
        ]

    def test_standalone_self_closing_raw_tag(self):
        """Test a self-closing tag in prose is extracted."""
        assert extract_xml_objects("Some text <img src='photo.jpg'/> more text") == [
            {"img": {"@_src": "photo.jpg"}}
        ]

    def test_mixed_content(self):
        """Test text around a nested element is kept as a list of pieces."""
        text = fenced("<paragraph>This is <b>bold</b> text.</paragraph>")
        assert extract_xml_objects(text) == [
            {"paragraph": {"#text": ["This is  text."], "b": "bold"}}
        ]

    def test_raw_mixed_content(self):
        """Test mixed content outside a fence gives the same value."""
        assert extract_xml_objects("<paragraph>This is <b>bold</b> text.</paragraph>") == [
            {"paragraph": {"#text": ["This is  text."], "b": "bold"}}
        ]

    def test_attribute_and_child_with_same_name(self):
        """Test an attribute and a child element do not clash."""
        text = fenced('<person name="John"><name>Johnny</name></person>')
        assert extract_xml_objects(text) == [
            {"person": {"@_name": "John", "name": "Johnny"}}
        ]

    def test_repeated_children(self):
        """Test repeated elements become a list."""
        text = "<list><item>a</item><item>b</item></list>"
        assert extract_xml_objects(text) == [{"list": {"item": ["a", "b"]}}]

    def test_very_large_structure(self):
        """Test a 100-level nested document is parsed."""
        result = extract_xml_objects(fenced(generate_nested_xml(100)))

        assert len(result) > 0
        root = result[0]["root"]
        assert isinstance(root, dict)
        assert "level0" in root
        assert root["level0"]["item"] == "value0"
        assert root["level0"]["level1"]["item"] == "value1"


class TestUnclosedFences:
    """Test recovery of truncated output."""

    def test_unclosed_code_block(self):
        """Test an unclosed block is still parsed, prose after it ignored."""
        text = f"""
      {FENCE}xml
      <person><name>John</name></person>
      More text in the block
    """
        assert extract_xml_objects(text) == [{"person": {"name": "John"}}]

    def test_multiple_unclosed_code_blocks(self):
        """Test a closed block followed by an unclosed one."""
        text = f"""
      {FENCE}xml
      <person><name>John</name></person>
      Some text
      {FENCE}
      Normal text
      {FENCE}xml
      <book><title>1984</title></book>
      More text
    """
        assert extract_xml_objects(text) == [
            {"person": {"name": "John"}},
            {"book": {"title": 1984}},
        ]


class TestErrors:
    """Test input validation and failure aggregation."""

    @pytest.mark.parametrize("bad_input", ["", None, 42, b"<a>1</a>", ["<a/>"]])
    def test_invalid_input(self, bad_input):
        """Test non-string or empty input is rejected."""
        with pytest.raises(InvalidInputError, match="Input must be a non-empty string"):
            extract_xml_objects(bad_input)

    def test_invalid_input_is_value_error(self):
        """Test callers catching ValueError also catch bad input."""
        with pytest.raises(ValueError):
            extract_xml_objects("")

    def test_unclosed_tags(self):
        """Test a single malformed block fails the whole call."""
        text = f"""
      {FENCE}xml
      <person><name>John
      {FENCE}
    """
        with pytest.raises(AllFragmentsFailedError, match="Failed to parse any XML blocks"):
            extract_xml_objects(text)

    def test_aggregate_error_lists_every_failure(self):
        """Test the aggregate message numbers each failed fragment."""
        long_body = "<a>" + "x" * 60
        text = fenced("<b><c></b>", long_body)

        with pytest.raises(AllFragmentsFailedError) as exc_info:
            extract_xml_objects(text)

        error = exc_info.value
        assert len(error.errors) == 2
        lines = error.message.split("\n")
        assert lines[0] == "Failed to parse any XML blocks:"
        assert lines[1].startswith("Error 1: XML is not well-formed:")
        assert lines[1].endswith("(Snippet: <b><c></b>)")
        assert lines[2].startswith("Error 2: ")
        assert error.errors[1].xml_snippet == long_body[:50] + "..."

    def test_parser_failure_is_recorded(self):
        """Test fragments the validator accepts but expat rejects are errors."""
        with pytest.raises(AllFragmentsFailedError) as exc_info:
            extract_xml_objects(fenced("<a>&nbsp;</a>"))

        assert "XML parsing failed" in exc_info.value.errors[0].message
        assert exc_info.value.errors[0].cause is not None

    def test_text_only_block_is_an_error(self):
        """Test a block with no elements produces an empty object error."""
        with pytest.raises(AllFragmentsFailedError) as exc_info:
            extract_xml_objects(fenced("no markup here"))

        assert exc_info.value.errors[0].message == "Parsed XML produced an empty object"

    def test_partial_success_drops_failures(self):
        """Test failed fragments are skipped when another one succeeds."""
        text = fenced("<person><name>John", "<book><title>1984</title></book>")

        assert extract_xml_objects(text) == [{"book": {"title": 1984}}]

    def test_no_xml_returns_empty_list(self):
        """Test text without XML yields an empty result, not an error."""
        assert extract_xml_objects("Just some text without any XML content") == []

    def test_unknown_option(self):
        """Test unknown parser options are rejected."""
        with pytest.raises(InvalidOptionsError, match="Unknown parser option"):
            extract_xml_objects("<a>1</a>", {"attributeNamePrefix": "@"})


class TestOptions:
    """Test caller-supplied parser options."""

    def test_options_override_defaults(self):
        """Test one option changes while the others keep their defaults."""
        result = extract_xml_objects('<a id="1"><b>2</b></a>', {"attribute_prefix": "@"})

        assert result == [{"a": {"@id": "1", "b": 2}}]

    def test_text_key_override(self):
        """Test the text key is used by both parser and simplifier."""
        result = extract_xml_objects("<p>x<b>y</b></p>", {"text_key": "_text"})

        assert result == [{"p": {"_text": ["x"], "b": "y"}}]

    @pytest.mark.parametrize(
        "text",
        [
            '<?xml version="1.0"?><a>1</a>',
            fenced('<?xml version="1.0" encoding="UTF-8"?>\n<a>1</a>'),
        ],
    )
    def test_declaration_kept_when_not_ignored(self, text):
        """Test the declaration reaches the result through the whole pipeline."""
        result = extract_xml_objects(text, {"ignore_declaration": False})

        assert len(result) == 1
        assert result[0]["?xml"]["@_version"] == "1.0"
        assert result[0]["a"] == 1

    def test_declaration_dropped_by_default(self):
        """Test the default options drop a raw fragment's declaration."""
        assert extract_xml_objects('<?xml version="1.0"?><a>1</a>') == [{"a": 1}]

    def test_parser_options_instance(self):
        """Test a ParserOptions instance can be passed directly."""
        result = extract_xml_objects("<a>7</a>", ParserOptions(parse_tag_value=False))

        assert result == [{"a": "7"}]


class TestXMLService:
    """Test the service class and its diagnostic result."""

    def test_extract_reports_errors_alongside_values(self):
        """Test extract() exposes failures that extract_xml_objects drops."""
        service = XMLService()
        result = service.extract(fenced("<bad>", "<good>1</good>") + "\n<raw/>")

        assert result.values == [{"good": 1}, {"raw": None}]
        assert len(result.errors) == 1
        assert result.errors[0].origin is FragmentOrigin.FENCED_BLOCK
        assert result.errors[0].xml_snippet == "<bad>"
        assert [f.origin for f in result.fragments] == [
            FragmentOrigin.FENCED_BLOCK,
            FragmentOrigin.FENCED_BLOCK,
            FragmentOrigin.RAW_TAG,
        ]
        assert result.succeeded is True
        assert result.all_failed is False

    def test_extract_with_no_fragments(self):
        """Test an empty result when nothing looks like XML."""
        result = XMLService().extract("plain")

        assert result.values == []
        assert result.errors == []
        assert result.all_failed is False

    def test_depth_limit_from_config(self):
        """Test the configured depth limit is enforced per fragment."""
        service = XMLService(config=ExtractionConfig(max_depth=5))

        with pytest.raises(AllFragmentsFailedError, match="Maximum nesting depth of 5"):
            service.extract_xml_objects(generate_nested_xml(10))

    def test_snippet_length_from_config(self):
        """Test the snippet length is configurable."""
        service = XMLService(config=ExtractionConfig(snippet_length=5))
        result = service.extract(fenced("<person><name>John"))

        assert result.errors[0].xml_snippet == "<pers..."

    def test_component_operations(self):
        """Test the pipeline steps are reachable individually."""
        service = XMLService()

        assert service.clean_fragment("<a><!-- x --></a>") == "<a></a>"
        assert service.validate_xml_structure("<a></a>") is True
        assert service.find_structure_issue("<a>").issue_type == "unclosed_tags"
        assert service.parse_fragment("<a>1</a>") == {"a": 1}
        assert service.simplify({"a": {"#text": "x"}}) == {"a": "x"}
        assert [f.text for f in service.find_fragments("<a>1</a>")] == ["<a>1</a>"]

    def test_independent_calls_share_no_state(self):
        """Test one service can be reused across inputs."""
        service = XMLService()

        assert service.extract_xml_objects("<a>1</a>") == [{"a": 1}]
        assert service.extract_xml_objects("<b>2</b>") == [{"b": 2}]


class TestAsyncWrapper:
    """Test the coroutine entry point."""

    def test_async_extraction(self):
        """Test the coroutine returns the same values."""
        result = asyncio.run(extract_xml_objects_async("<person><name>John</name></person>"))

        assert result == [{"person": {"name": "John"}}]

    def test_async_errors_propagate(self):
        """Test failures are raised from the awaited coroutine."""
        with pytest.raises(InvalidInputError):
            asyncio.run(extract_xml_objects_async(""))
