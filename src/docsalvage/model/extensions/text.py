from ..core import NodeExtension

DEFINITION = NodeExtension(
    name="text",
    group="inline",
    inline=True,
)
