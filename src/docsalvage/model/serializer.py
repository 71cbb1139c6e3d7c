# src/docsalvage/model/serializer.py
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement

from .core import DOMOutputSpec
from .nodes import Fragment, Mark, Node
from .schema import Schema

logger = logging.getLogger(__name__)


def get_rendered_attributes(item: Union[Node, Mark]) -> Dict[str, Any]:
    """
    Collects the HTML attributes for a node or mark from its declared attribute specs.
    Attributes that render to None are left out.
    """
    rendered: Dict[str, Any] = {}
    for name, spec in item.type.extension.attributes.items():
        value = item.attrs.get(name)
        output = spec.render_html(item.attrs) if spec.render_html else {name: value}
        for key, val in (output or {}).items():
            if val is not None:
                rendered[key] = val
    return rendered


class DOMSerializer:
    """Renders document nodes back into HTML through each type's render hook."""

    def __init__(self, schema: Schema):
        self.schema = schema
        self.soup = BeautifulSoup("", "html.parser")

    @classmethod
    def from_schema(cls, schema: Schema) -> "DOMSerializer":
        return cls(schema)

    def serialize_fragment(self, fragment: Fragment) -> Tag:
        """Returns a detached <div> holding the rendered fragment."""
        container = self.soup.new_tag("div")
        for node in fragment:
            container.append(self.serialize_node(node))
        return container

    def serialize_node(self, node: Node) -> PageElement:
        if node.is_text:
            return self._wrap_marks(NavigableString(node.text), node.marks)

        spec = node.type.extension.render_html(node, get_rendered_attributes(node))
        element, hole = self._render_spec(spec)
        if hole is not None:
            for child in node.content:
                hole.append(self.serialize_node(child))
        elif node.child_count:
            logger.debug("Render spec for '%s' has no content hole; children dropped.", node.type.name)
        return self._wrap_marks(element, node.marks)

    def _wrap_marks(self, element: PageElement, marks: List[Mark]) -> PageElement:
        # The first mark ends up outermost
        for mark in reversed(marks):
            spec = mark.type.extension.render_html(mark, get_rendered_attributes(mark))
            wrapper, hole = self._render_spec(spec)
            (hole if hole is not None else wrapper).append(element)
            element = wrapper
        return element

    def _render_spec(self, spec: DOMOutputSpec) -> Tuple[PageElement, Optional[Tag]]:
        """Builds the element for an output spec and returns it together with its content hole."""
        if isinstance(spec, str):
            return NavigableString(spec), None

        element = self.soup.new_tag(spec[0])
        hole: Optional[Tag] = None
        children = spec[1:]

        if children and isinstance(children[0], dict):
            for key, value in children[0].items():
                if value is not None:
                    element[key] = value if isinstance(value, str) else str(value)
            children = children[1:]

        for child in children:
            if isinstance(child, int) and child == 0:
                hole = element
            else:
                child_element, child_hole = self._render_spec(child)
                element.append(child_element)
                if child_hole is not None:
                    hole = child_hole
        return element, hole


def get_html(content: Union[Node, Fragment], schema: Schema) -> str:
    """Serializes a document, node or fragment to an HTML string."""
    if isinstance(content, Node) and content.type is schema.top_node_type:
        fragment = content.content
    elif isinstance(content, Node):
        fragment = Fragment.from_array([content])
    else:
        fragment = content

    return DOMSerializer.from_schema(schema).serialize_fragment(fragment).decode_contents()
