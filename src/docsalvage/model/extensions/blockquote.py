from ..core import NodeExtension, ParseRule

DEFINITION = NodeExtension(
    name="blockquote",
    group="block",
    content="block+",
    parse_rules=[ParseRule("blockquote")],
)
