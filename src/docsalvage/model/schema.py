# src/docsalvage/model/schema.py
import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Union

from .core import AttributeSpec, MarkExtension, NodeExtension
from .errors import MalformedContentError, SchemaError, SchemaRejectionError
from .nodes import Fragment, Mark, Node

logger = logging.getLogger(__name__)

MarkRef = Union[str, Mapping[str, Any]]


def _compute_attrs(specs: Dict[str, AttributeSpec], given: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Builds the attribute dict from declared specs; undeclared keys are dropped."""
    given = given or {}
    return {
        name: given[name] if name in given else spec.default
        for name, spec in specs.items()
    }


class NodeType:
    """A node type in a schema, backed by the NodeExtension that declared it."""

    def __init__(self, name: str, schema: "Schema", extension: NodeExtension):
        self.name = name
        self.schema = schema
        self.extension = extension
        self.group = extension.group
        self.content_expression = extension.content or ""
        self.is_text = name == "text"
        self.is_inline = extension.inline or self.is_text

    @property
    def inline_content(self) -> bool:
        """True if the content expression admits inline nodes (e.g. 'inline*')."""
        return "inline" in self.content_expression or "text" in self.content_expression

    @property
    def is_leaf(self) -> bool:
        return not self.content_expression

    def create(
            self,
            attrs: Optional[Mapping[str, Any]] = None,
            content: Optional[Fragment] = None,
            marks: Optional[List[Mark]] = None
    ) -> Node:
        return Node(self, _compute_attrs(self.extension.attributes, attrs), content, marks)

    def __repr__(self) -> str:
        return f"NodeType({self.name!r})"


class MarkType:
    """A mark type in a schema, backed by the MarkExtension that declared it."""

    def __init__(self, name: str, schema: "Schema", extension: MarkExtension):
        self.name = name
        self.schema = schema
        self.extension = extension

    def create(self, attrs: Optional[Mapping[str, Any]] = None) -> Mark:
        return Mark(self, _compute_attrs(self.extension.attributes, attrs))

    def __repr__(self) -> str:
        return f"MarkType({self.name!r})"


class Schema:
    """
    The set of node and mark types for one editor configuration.

    Types are keyed by name in resolution order; when two extensions declare the
    same name, the first (highest priority) one wins.
    """

    def __init__(
            self,
            node_extensions: List[NodeExtension],
            mark_extensions: List[MarkExtension],
            top_node: str = "doc"
    ):
        self.nodes: Dict[str, NodeType] = {}
        self.marks: Dict[str, MarkType] = {}

        for extension in node_extensions:
            if extension.name in self.nodes:
                logger.debug("Node type '%s' already defined, skipping duplicate.", extension.name)
                continue
            self.nodes[extension.name] = NodeType(extension.name, self, extension)

        for extension in mark_extensions:
            if extension.name in self.marks:
                logger.debug("Mark type '%s' already defined, skipping duplicate.", extension.name)
                continue
            self.marks[extension.name] = MarkType(extension.name, self, extension)

        if top_node not in self.nodes:
            raise SchemaError(f"Schema is missing its top node type '{top_node}'")
        if "text" not in self.nodes:
            raise SchemaError("Every schema needs a 'text' type")

        self.top_node_type = self.nodes[top_node]

    @property
    def node_type_names(self) -> FrozenSet[str]:
        return frozenset(self.nodes)

    @property
    def mark_type_names(self) -> FrozenSet[str]:
        return frozenset(self.marks)

    def text(self, text: str, marks: Optional[List[Mark]] = None) -> Node:
        return Node(self.nodes["text"], content=None, marks=marks, text=text)

    def mark_from_json(self, json: MarkRef) -> Mark:
        """Builds a Mark from either a bare type name or a {type, attrs} mapping."""
        if isinstance(json, str):
            name, attrs = json, None
        elif isinstance(json, Mapping):
            name, attrs = json.get("type"), json.get("attrs")
        else:
            raise MalformedContentError(f"Invalid mark JSON: {json!r}")

        if not isinstance(name, str):
            raise MalformedContentError(f"Mark JSON is missing a 'type': {json!r}")
        if attrs is not None and not isinstance(attrs, Mapping):
            raise MalformedContentError(f"Mark '{name}' has non-mapping 'attrs'")

        mark_type = self.marks.get(name)
        if mark_type is None:
            raise SchemaRejectionError("mark", name)
        return mark_type.create(attrs)

    def node_from_json(self, json: Any) -> Node:
        """
        Strictly builds a Node from its JSON representation.

        Raises:
            MalformedContentError: If the JSON is not a node mapping, lacks a type,
                or is nested deeper than the interpreter can build.
            SchemaRejectionError: If a node or mark type is unknown to this schema.
        """
        try:
            return self._node_from_json(json)
        except RecursionError as e:
            raise MalformedContentError("Node JSON is nested too deeply to build") from e

    def _node_from_json(self, json: Any) -> Node:
        if not isinstance(json, Mapping):
            raise MalformedContentError(f"Invalid node JSON: {json!r}")

        type_name = json.get("type")
        if not type_name or not isinstance(type_name, str):
            raise MalformedContentError("Node JSON is missing a 'type'")

        node_type = self.nodes.get(type_name)
        if node_type is None:
            raise SchemaRejectionError("node", type_name)

        for key in ("content", "marks"):
            if json.get(key) is not None and not isinstance(json[key], (list, tuple)):
                raise MalformedContentError(f"Node '{type_name}' has a non-list '{key}'")
        if json.get("attrs") is not None and not isinstance(json["attrs"], Mapping):
            raise MalformedContentError(f"Node '{type_name}' has non-mapping 'attrs'")

        marks = [self.mark_from_json(mark) for mark in json.get("marks") or []]

        if node_type.is_text:
            text = json.get("text")
            if not isinstance(text, str) or not text:
                raise MalformedContentError("Text node JSON needs a non-empty 'text'")
            return self.text(text, marks)

        content = Fragment.from_array(self._node_from_json(child) for child in json.get("content") or [])
        return node_type.create(json.get("attrs"), content, marks)
