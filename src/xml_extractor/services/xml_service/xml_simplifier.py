from typing import Any, Dict, List

from ...config.settings import DEFAULT_MAX_DEPTH
from ...utils.xml_parsing_exceptions import FragmentParseError


class XMLSimplifier:
    """
    Reshapes an xmltodict node tree into the extractor's public value shape.

    Rules, applied bottom-up:
    - Scalars pass through unchanged.
    - Lists are simplified element-wise; a one-element list unwraps to its element.
    - In a mapping, attribute keys keep their values, element keys are simplified
      recursively and text under the text key is collected as a list of strings.
      A mapping holding only text collapses to that text (a single string, or the
      list of pieces). When elements or attributes sit next to the text, the list
      of pieces is kept under the text key.
    """

    def __init__(
        self,
        text_key: str = "#text",
        attribute_prefix: str = "@_",
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.text_key = text_key
        self.attribute_prefix = attribute_prefix
        self.max_depth = max_depth

    def simplify(self, node: Any) -> Any:
        return self._simplify(node, 0)

    def _simplify(self, node: Any, depth: int) -> Any:
        if depth > self.max_depth:
            raise FragmentParseError(f"Maximum nesting depth of {self.max_depth} exceeded")

        if isinstance(node, dict):
            return self._simplify_mapping(node, depth)
        if isinstance(node, list):
            return self._simplify_list(node, depth)
        return node

    def _simplify_list(self, items: List[Any], depth: int) -> Any:
        simplified = [self._simplify(item, depth + 1) for item in items]
        if len(simplified) == 1:
            return simplified[0]
        return simplified

    def _simplify_mapping(self, node: Dict[str, Any], depth: int) -> Any:
        result: Dict[str, Any] = {}
        text_pieces: List[str] = []

        for key, value in node.items():
            if key == self.text_key:
                values = value if isinstance(value, list) else [value]
                text_pieces.extend(self._stringify(piece) for piece in values)
            elif self.attribute_prefix and key.startswith(self.attribute_prefix):
                result[key] = value
            else:
                result[key] = self._simplify(value, depth + 1)

        if not text_pieces:
            return result
        if not result:
            return text_pieces[0] if len(text_pieces) == 1 else text_pieces
        return {self.text_key: text_pieces, **result}

    @staticmethod
    def _stringify(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (str, int, float)):
            return str(value)
        return ""
