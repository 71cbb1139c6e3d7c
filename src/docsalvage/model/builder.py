# src/docsalvage/model/builder.py
import logging
import re
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from docsalvage.core.managers.config_manager import config_manager
from .core import ParseRule
from .errors import MalformedContentError
from .nodes import Fragment, Mark, Node, Slice
from .schema import MarkType, NodeType, Schema

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def element_from_string(value: str) -> Tag:
    """
    Wraps an HTML string in a <body> element so it can be parsed as a DOM subtree.
    Multi-valued attributes (class, rel, ...) are kept as plain strings so they
    round-trip unchanged.
    """
    features = config_manager.get_nested("parser.features", "html.parser")
    # Basic cleanup of potentially dirty HTML (e.g., BOM)
    clean_html = value.replace('\ufeff', '')
    soup = BeautifulSoup(f"<body>{clean_html}</body>", features, multi_valued_attributes=None)
    return soup.body


class _SchemaRule(NamedTuple):
    kind: str
    type: Union[NodeType, MarkType]
    rule: ParseRule


class DOMParser:
    """
    Parses a bs4 DOM subtree into document nodes using the parse rules of a schema.

    Rules are tried in order: mark rules before node rules, each in schema order,
    then stable-sorted by rule priority. The first rule whose tag matches and whose
    `get_attrs` does not return None wins. Elements that no rule matches are
    transparent: their children are parsed into the current parent.
    """

    def __init__(self, schema: Schema, rules: List[_SchemaRule]):
        self.schema = schema
        self.rules = rules

    @classmethod
    def from_schema(cls, schema: Schema) -> "DOMParser":
        rules: List[_SchemaRule] = []
        for mark_type in schema.marks.values():
            rules.extend(_SchemaRule("mark", mark_type, rule) for rule in mark_type.extension.parse_rules)
        for node_type in schema.nodes.values():
            rules.extend(_SchemaRule("node", node_type, rule) for rule in node_type.extension.parse_rules)

        rules.sort(key=lambda entry: entry.rule.priority, reverse=True)
        return cls(schema, rules)

    def parse(self, dom: Tag, parse_options: Optional[Dict[str, Any]] = None) -> Node:
        """Parses the DOM into a complete document rooted in the schema's top node."""
        top = self.schema.top_node_type
        content = self._parse_root(dom, top, parse_options or {})
        logger.debug("Parsed document with %d top-level nodes.", len(content))
        return top.create(None, Fragment.from_array(content))

    def parse_slice(self, dom: Tag, parse_options: Optional[Dict[str, Any]] = None) -> Slice:
        """Parses the DOM into an unrooted fragment."""
        content = self._parse_root(dom, None, parse_options or {})
        logger.debug("Parsed slice with %d nodes.", len(content))
        return Slice(Fragment.from_array(content))

    # --- Internals ---

    def _parse_root(self, dom: Tag, parent_type: Optional[NodeType], options: Dict[str, Any]) -> List[Node]:
        try:
            return self._parse_children(dom, [], parent_type, options)
        except RecursionError as e:
            raise MalformedContentError("Markup is nested too deeply to parse") from e

    def _match(self, element: Tag) -> Optional[Tuple[_SchemaRule, Dict[str, Any]]]:
        tag_name = (element.name or "").lower()
        for entry in self.rules:
            if not entry.rule.matches_tag(tag_name):
                continue

            attrs: Dict[str, Any] = {}
            if entry.rule.get_attrs:
                found = entry.rule.get_attrs(element)
                if found is None:
                    continue
                attrs = dict(found)

            # Declared attributes read their own values off the element
            for name, spec in entry.type.extension.attributes.items():
                value = spec.parse_html(element) if spec.parse_html else element.get(name)
                if value is not None:
                    attrs[name] = value

            return entry, attrs
        return None

    def _parse_children(
            self,
            element: Tag,
            marks: List[Mark],
            parent_type: Optional[NodeType],
            options: Dict[str, Any]
    ) -> List[Node]:
        nodes: List[Node] = []
        for child in element.children:
            if isinstance(child, Tag):
                nodes.extend(self._parse_element(child, marks, parent_type, options))
            elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                text = self._normalize_text(str(child), parent_type, options)
                if text:
                    nodes.append(self.schema.text(text, list(marks)))
        return self._merge_text(nodes)

    def _parse_element(
            self,
            element: Tag,
            marks: List[Mark],
            parent_type: Optional[NodeType],
            options: Dict[str, Any]
    ) -> List[Node]:
        match = self._match(element)
        if match is None:
            return self._parse_children(element, marks, parent_type, options)

        entry, attrs = match
        if entry.kind == "mark":
            mark = entry.type.create(attrs)
            active = [m for m in marks if m.type is not mark.type] + [mark]
            return self._parse_children(element, active, parent_type, options)

        node_type: NodeType = entry.type
        if node_type.is_text:
            return self._parse_children(element, marks, parent_type, options)

        content = self._parse_children(element, marks, node_type, options)
        node_marks = list(marks) if node_type.is_inline else None
        return [node_type.create(attrs, Fragment.from_array(content), node_marks)]

    @staticmethod
    def _normalize_text(text: str, parent_type: Optional[NodeType], options: Dict[str, Any]) -> str:
        if options.get("preserve_whitespace"):
            return text
        text = _WHITESPACE.sub(" ", text)
        # Formatting whitespace between blocks carries no content
        if not text.strip() and (parent_type is None or not parent_type.inline_content):
            return ""
        return text

    @staticmethod
    def _merge_text(nodes: List[Node]) -> List[Node]:
        """Joins adjacent text nodes that carry the same marks."""
        merged: List[Node] = []
        for node in nodes:
            previous = merged[-1] if merged else None
            if previous is not None and previous.is_text and node.is_text and previous.marks == node.marks:
                merged[-1] = Node(previous.type, marks=previous.marks, text=previous.text + node.text)
            else:
                merged.append(node)
        return merged
