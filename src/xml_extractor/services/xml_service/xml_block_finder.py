import re
from typing import List, Tuple

from loguru import logger

from ...config.settings import FENCE_CLOSE_MARKER, FENCE_OPEN_MARKER
from .xml_issue import Fragment, FragmentOrigin


class XMLBlockFinder:
    """Finds XML fragments in free-form text: fenced ```xml blocks first, then raw tags."""

    # A complete element: either self-closing, or the shortest content up to the
    # closing tag of the same name that does not reopen that name on the way.
    # Only one level of same-name reopening is avoided, so <a><a></a></a>
    # matches the inner pair rather than the outer one. A directly preceding
    # XML declaration is kept with the element.
    RAW_ELEMENT_PATTERN = re.compile(
        r"(?:<\?xml\s[^<>]*?\?>\s*)?"
        r"<([A-Za-z_][\w.:-]*)(?:\s[^<>]*?)?"
        r"(?:/>|>(?:(?!<\1[\s/>])[\s\S])*?</\1\s*>)"
    )

    def find_fragments(self, text: str) -> List[Fragment]:
        """
        Find every XML fragment in the text.

        Args:
            text: Text to search, typically an LLM response

        Returns:
            Fenced-block fragments in document order, followed by raw-tag
            fragments found outside the fenced blocks, in document order
        """
        fenced_blocks, clean_text = self.find_fenced_blocks(text)
        raw_blocks = self.find_raw_blocks(clean_text)

        logger.debug(
            f"Found {len(fenced_blocks)} fenced and {len(raw_blocks)} raw XML fragments"
        )

        fragments = [Fragment(block, FragmentOrigin.FENCED_BLOCK) for block in fenced_blocks]
        fragments.extend(Fragment(block, FragmentOrigin.RAW_TAG) for block in raw_blocks)
        return fragments

    def find_fenced_blocks(self, text: str) -> Tuple[List[str], str]:
        """
        Scan the text line by line for ```xml fenced blocks.

        Fences do not nest: a new opening marker flushes the block in progress.
        A block left open at the end of the text is still returned, since
        truncated model output commonly drops the closing fence.

        Returns:
            Tuple of (block contents, text with every fenced span removed)
        """
        blocks: List[str] = []
        outside_lines: List[str] = []
        block_lines: List[str] = []
        in_block = False

        def flush() -> None:
            content = "\n".join(block_lines).strip()
            if content:
                blocks.append(content)
            block_lines.clear()

        for line in text.split("\n"):
            stripped = line.strip()

            if stripped.startswith(FENCE_OPEN_MARKER):
                if in_block:
                    flush()
                in_block = True
            elif in_block and stripped == FENCE_CLOSE_MARKER:
                flush()
                in_block = False
            elif in_block:
                block_lines.append(line)
            else:
                outside_lines.append(line)

        if in_block:
            logger.debug("Input ended inside an unclosed ```xml block")
            flush()

        return blocks, "\n".join(outside_lines)

    def find_raw_blocks(self, text: str) -> List[str]:
        """Find complete XML elements written directly in the text."""
        raw_blocks = []
        for match in self.RAW_ELEMENT_PATTERN.finditer(text):
            block = match.group(0).strip()
            if block:
                raw_blocks.append(block)
        return raw_blocks
