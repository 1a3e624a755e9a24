import re
from typing import List, Optional

from loguru import logger

from .xml_issue import XMLIssue


class XMLValidator:
    """Stack-based tag matching, run before the full parse to fail fast."""

    # Any <...> that is not a comment, PI, CDATA section or declaration
    TAG_PATTERN = re.compile(r"<(?![!?])(/?)([^\s<>/]*)([^<>]*?)(/?)>")
    TAG_NAME_PATTERN = re.compile(r"^[A-Za-z_][\w.:-]*$")
    CDATA_PATTERN = re.compile(r"<!\[CDATA\[[\s\S]*?\]\]>")

    def validate_xml_structure(self, xml_text: str) -> bool:
        """Validate XML structure by checking tag matching."""
        return self.find_structure_issue(xml_text) is None

    def find_structure_issue(self, xml_text: str) -> Optional[XMLIssue]:
        """
        Walk every opening and closing tag keeping a stack of open names.

        Returns:
            The first issue found, or None when every tag is properly closed
        """
        # CDATA content is character data, not markup
        xml_text = self.CDATA_PATTERN.sub("", xml_text)
        open_tags: List[str] = []

        for match in self.TAG_PATTERN.finditer(xml_text):
            is_closing, tag_name, _, self_closing = match.groups()

            if not self.TAG_NAME_PATTERN.match(tag_name):
                return XMLIssue(
                    issue_type="invalid_tag_name",
                    description=f"Invalid tag name in '{match.group(0)}'",
                    location=match.group(0),
                )

            if is_closing:
                if not open_tags:
                    return XMLIssue(
                        issue_type="unexpected_closing_tag",
                        description=f"Closing tag '</{tag_name}>' has no matching opening tag",
                        location=tag_name,
                    )
                if open_tags[-1] != tag_name:
                    return XMLIssue(
                        issue_type="mismatched_tags",
                        description=f"Expected '</{open_tags[-1]}>' but found '</{tag_name}>'",
                        location=tag_name,
                    )
                open_tags.pop()
            elif not self_closing:
                open_tags.append(tag_name)

        if open_tags:
            logger.debug(f"Unclosed tags at end of fragment: {open_tags}")
            return XMLIssue(
                issue_type="unclosed_tags",
                description=f"Unclosed tag(s): {', '.join(open_tags)}",
                location=open_tags[-1],
            )

        return None
