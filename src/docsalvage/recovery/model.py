# src/docsalvage/recovery/model.py (Recovery Layer)
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ContentKind(str, Enum):
    NODE = "node"
    MARK = "mark"


PathSegment = Union[str, int]


class InvalidContentBlock(BaseModel):
    """
    A node or mark whose type is not part of the schema.

    Blocks are reported from the deepest content outward. `invalid_parent_node`
    tells whether an enclosing node was already reported, so a consumer can act on
    the outermost offender only.
    """
    kind: ContentKind = Field(description="Whether the invalid content is a node or a mark.")
    name: str = Field(description="The unknown type name.")
    attributes: List[str] = Field(default_factory=list, description="Attribute names found on the JSON object.")
    path: List[PathSegment] = Field(
        default_factory=list,
        description="Replayable pointer into the original JSON ('content'/'marks' and indices)."
    )
    invalid_parent_node: bool = False
    invalid_parent_mark: bool = False


class UnknownElement(BaseModel):
    """An HTML element that no parse rule of the real schema matched."""
    tag_name: str
    attribute_names: List[str] = Field(default_factory=list)


class PlaceholderDescriptor(BaseModel):
    """
    One (kind, tag) observed in unknown content, with the union of all attribute
    names seen across its occurrences.
    """
    kind: ContentKind = ContentKind.NODE
    tag_name: str
    attributes: List[str] = Field(default_factory=list)

    def merge(self, attribute_names: List[str]) -> None:
        """Adds attribute names that were not seen before, keeping first-seen order."""
        for name in attribute_names:
            if name not in self.attributes:
                self.attributes.append(name)


class InvalidContentReport(BaseModel):
    """
    Payload handed to invalid-content handlers: the offending JSON, the ordered
    invalid blocks, the error that triggered the report and the available transformers.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")

    json_content: Any = None
    invalid_content: List[InvalidContentBlock] = Field(default_factory=list)
    error: Optional[Exception] = None
    transformers: Any = None
