from ..core import NodeExtension

# The top node of every schema. It is never parsed from HTML directly;
# the DOMParser creates it around the parsed content.
DEFINITION = NodeExtension(
    name="doc",
    content="block+",
)
