# src/docsalvage/model/core.py
import sys
from typing import Any, Callable, Dict, List, Optional

from bs4 import Tag

# Extension priority: higher values are resolved (and matched) first.
DEFAULT_PRIORITY = 100
LOWEST_PRIORITY = -sys.maxsize - 1

# Parse rule priority, only relevant between rules of the same schema.
DEFAULT_RULE_PRIORITY = 50

# An output spec as returned by render hooks: [tag, attrs?, 0 | child specs...]
DOMOutputSpec = List[Any]
RenderHTML = Callable[..., DOMOutputSpec]


class ParseRule:
    """
    Describes how an HTML element maps onto a node or mark type.

    `tag` is either a lower-case tag name or '*' to match any element.
    `get_attrs` receives the bs4 Tag; returning None means the rule does not match,
    returning a dict means it matches with those attributes.
    """

    def __init__(
            self,
            tag: str,
            get_attrs: Optional[Callable[[Tag], Optional[Dict[str, Any]]]] = None,
            priority: int = DEFAULT_RULE_PRIORITY
    ):
        self.tag = tag.lower()
        self.get_attrs = get_attrs
        self.priority = priority

    def matches_tag(self, tag_name: str) -> bool:
        return self.tag == "*" or self.tag == tag_name

    def __repr__(self) -> str:
        return f"ParseRule(tag={self.tag!r}, priority={self.priority})"


class AttributeSpec:
    """Declaration of a single node/mark attribute."""

    def __init__(
            self,
            default: Any = None,
            parse_html: Optional[Callable[[Tag], Any]] = None,
            render_html: Optional[Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = None
    ):
        self.default = default
        self.parse_html = parse_html
        self.render_html = render_html


class Extension:
    """
    Base class for everything that can be handed to the ExtensionManager.

    Plain extensions (e.g. 'collaboration') add no types to the schema;
    NodeExtension and MarkExtension do.
    """
    kind = "extension"

    def __init__(self, name: str, priority: int = DEFAULT_PRIORITY):
        self.name = name
        self.priority = priority

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


class _SchemaExtension(Extension):
    """Shared behaviour for extensions that contribute a node or mark type."""

    def __init__(
            self,
            name: str,
            priority: int = DEFAULT_PRIORITY,
            attributes: Optional[Dict[str, AttributeSpec]] = None,
            parse_rules: Optional[List[ParseRule]] = None,
            render_html: Optional[RenderHTML] = None
    ):
        super().__init__(name, priority)
        self.attributes = attributes or {}
        self.parse_rules = parse_rules or []
        self._render_html = render_html

    def render_html(self, item: Any, html_attributes: Dict[str, Any]) -> DOMOutputSpec:
        """
        Returns the output spec for a node or mark of this type.
        Without a custom hook the element is rendered under the extension name.
        """
        if self._render_html:
            return self._render_html(item, html_attributes)
        return [self.name, html_attributes, 0]


class NodeExtension(_SchemaExtension):
    """Contributes a node type. `content` is a content expression such as 'inline*'."""
    kind = "node"

    def __init__(
            self,
            name: str,
            priority: int = DEFAULT_PRIORITY,
            group: Optional[str] = None,
            content: Optional[str] = None,
            inline: bool = False,
            attributes: Optional[Dict[str, AttributeSpec]] = None,
            parse_rules: Optional[List[ParseRule]] = None,
            render_html: Optional[RenderHTML] = None
    ):
        super().__init__(name, priority, attributes, parse_rules, render_html)
        self.group = group
        self.content = content
        self.inline = inline


class MarkExtension(_SchemaExtension):
    """Contributes a mark type. Marks carry no content model."""
    kind = "mark"
