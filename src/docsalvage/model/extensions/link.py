from typing import Any, Dict, Optional

from bs4 import Tag

from ..core import AttributeSpec, MarkExtension, ParseRule

UNSAFE_PROTOCOLS = ("javascript:", "vbscript:", "data:")


def parse_link(element: Tag) -> Optional[Dict[str, Any]]:
    """Only anchors with a safe href become links; the rest stay plain text."""
    href = (element.get("href") or "").strip()
    if not href or href.lower().startswith(UNSAFE_PROTOCOLS):
        return None
    return {}


DEFINITION = MarkExtension(
    name="link",
    priority=1000,
    attributes={
        "href": AttributeSpec(default=None),
        "target": AttributeSpec(default=None),
        "rel": AttributeSpec(default=None),
    },
    parse_rules=[ParseRule("a", get_attrs=parse_link)],
    render_html=lambda mark, html_attributes: ["a", html_attributes, 0],
)
