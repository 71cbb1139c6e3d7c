from typing import Any, Dict, List

from ..core import AttributeSpec, DOMOutputSpec, NodeExtension, ParseRule

LEVELS = [1, 2, 3, 4, 5, 6]


def render_heading(node: Any, html_attributes: Dict[str, Any]) -> DOMOutputSpec:
    """Renders h1-h6 from the level attribute; unknown levels fall back to the first one."""
    level = node.attrs.get("level")
    if level not in LEVELS:
        level = LEVELS[0]
    return [f"h{level}", html_attributes, 0]


def _heading_rules() -> List[ParseRule]:
    # The level is derived from the tag name (e.g. 'h2' -> 2)
    return [ParseRule(f"h{level}", get_attrs=lambda element, level=level: {"level": level}) for level in LEVELS]


DEFINITION = NodeExtension(
    name="heading",
    group="block",
    content="inline*",
    attributes={
        "level": AttributeSpec(default=1, parse_html=lambda element: None, render_html=lambda attrs: None),
    },
    parse_rules=_heading_rules(),
    render_html=render_heading,
)
