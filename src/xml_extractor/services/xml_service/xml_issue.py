from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class FragmentOrigin(Enum):
    """Where in the input a fragment was found."""

    FENCED_BLOCK = "fenced_block"
    RAW_TAG = "raw_tag"


@dataclass(frozen=True)
class Fragment:
    """Candidate substring believed to hold one complete XML document."""

    text: str
    origin: FragmentOrigin


@dataclass
class XMLIssue:
    """Data class for XML validation issues."""

    issue_type: str
    description: str
    location: Optional[str] = None


@dataclass
class ExtractionError:
    """Record of a fragment that was found but could not be parsed."""

    message: str
    xml_snippet: str
    origin: Optional[FragmentOrigin] = None
    cause: Optional[Exception] = None


@dataclass
class ExtractionResult:
    """Values and errors collected by one extraction call, in fragment order."""

    values: List[Any] = field(default_factory=list)
    errors: List[ExtractionError] = field(default_factory=list)
    fragments: List[Fragment] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return bool(self.values)

    @property
    def all_failed(self) -> bool:
        return not self.values and bool(self.errors)
