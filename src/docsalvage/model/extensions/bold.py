from ..core import MarkExtension, ParseRule

DEFINITION = MarkExtension(
    name="bold",
    parse_rules=[ParseRule("strong"), ParseRule("b")],
    render_html=lambda mark, html_attributes: ["strong", html_attributes, 0],
)
