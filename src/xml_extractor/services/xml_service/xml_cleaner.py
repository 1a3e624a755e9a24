import re


class XMLCleaner:
    """Strips comments and processing instructions from an XML fragment."""

    COMMENT_PATTERN = re.compile(r"<!--[\s\S]*?-->")
    PROCESSING_INSTRUCTION_PATTERN = re.compile(r"<\?[\s\S]*?\?>")
    DECLARATION_PATTERN = re.compile(r"^\s*<\?xml\s[\s\S]*?\?>")

    def clean_fragment(self, xml_text: str, keep_declaration: bool = False) -> str:
        """
        Remove every comment and processing instruction, leaving the rest untouched.

        Args:
            xml_text: Fragment to clean
            keep_declaration: Keep a leading <?xml ...?> declaration for the parser
        """
        xml_text = self.COMMENT_PATTERN.sub("", xml_text)

        declaration = ""
        if keep_declaration:
            match = self.DECLARATION_PATTERN.match(xml_text)
            if match:
                declaration = match.group(0)
                xml_text = xml_text[match.end():]

        return declaration + self.PROCESSING_INSTRUCTION_PATTERN.sub("", xml_text)
