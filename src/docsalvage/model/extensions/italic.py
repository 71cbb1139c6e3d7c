from ..core import MarkExtension, ParseRule

DEFINITION = MarkExtension(
    name="italic",
    parse_rules=[ParseRule("em"), ParseRule("i")],
    render_html=lambda mark, html_attributes: ["em", html_attributes, 0],
)
