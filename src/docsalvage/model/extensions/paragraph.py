from ..core import NodeExtension, ParseRule

DEFINITION = NodeExtension(
    name="paragraph",
    priority=1000,
    group="block",
    content="inline*",
    parse_rules=[ParseRule("p")],
    render_html=lambda node, html_attributes: ["p", html_attributes, 0],
)
