# src/docsalvage/recovery/placeholder.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from docsalvage.core.managers.config_manager import config_manager
from docsalvage.model.core import (
    LOWEST_PRIORITY,
    AttributeSpec,
    DOMOutputSpec,
    Extension,
    MarkExtension,
    NodeExtension,
    ParseRule,
    RenderHTML,
)
from docsalvage.model.registry import get_schema
from .model import ContentKind, PlaceholderDescriptor
from .probe import find_unknown_elements
from .validator import get_unknown_content

logger = logging.getLogger(__name__)


def collect_placeholder_descriptors(observations: Iterable[PlaceholderDescriptor]) -> List[PlaceholderDescriptor]:
    """
    Groups observations by (kind, tag name). Attribute names are merged by union,
    so attributes seen on only some occurrences are still declared.
    """
    groups: Dict[Tuple[ContentKind, str], PlaceholderDescriptor] = {}
    for observation in observations:
        key = (observation.kind, observation.tag_name)
        if key not in groups:
            groups[key] = PlaceholderDescriptor(kind=observation.kind, tag_name=observation.tag_name)
        groups[key].merge(observation.attributes)
    return list(groups.values())


def _attribute_reader(name: str):
    return lambda element: element.get(name)


def _placeholder_renderer(tag_name: str, fallback: Optional[RenderHTML]) -> RenderHTML:
    def render_html(item: Any, html_attributes: Dict[str, Any]) -> DOMOutputSpec:
        if fallback is not None:
            return fallback(item, html_attributes)
        return [tag_name, html_attributes, 0]
    return render_html


def create_placeholder_extension(
        descriptor: PlaceholderDescriptor,
        fallback: Optional[RenderHTML] = None
) -> Extension:
    """Builds the lowest-priority node or mark extension that holds one unknown tag."""
    attributes = {
        name: AttributeSpec(default=None, parse_html=_attribute_reader(name))
        for name in descriptor.attributes
    }
    parse_rules = [ParseRule(descriptor.tag_name)]
    render_html = _placeholder_renderer(descriptor.tag_name, fallback)

    if descriptor.kind == ContentKind.MARK:
        return MarkExtension(
            name=descriptor.tag_name,
            priority=LOWEST_PRIORITY,
            attributes=attributes,
            parse_rules=parse_rules,
            render_html=render_html,
        )

    return NodeExtension(
        name=descriptor.tag_name,
        priority=LOWEST_PRIORITY,
        group="block",
        content="inline*",
        attributes=attributes,
        parse_rules=parse_rules,
        render_html=render_html,
    )


def generate_placeholder_extensions(
        observations: Iterable[PlaceholderDescriptor],
        fallback: Optional[RenderHTML] = None
) -> List[Extension]:
    """Returns exactly one placeholder extension per distinct (kind, tag name)."""
    return [
        create_placeholder_extension(descriptor, fallback)
        for descriptor in collect_placeholder_descriptors(observations)
    ]


def is_content_invalid(content: Any, extensions: Sequence[Extension]) -> bool:
    """True if the content holds any node, mark or element the extensions cannot represent."""
    if not content:
        return False

    if isinstance(content, str):
        return bool(find_unknown_elements(content, extensions))

    schema = get_schema(extensions)
    return bool(get_unknown_content(content, schema))


def create_placeholder_extensions(
        content: Any,
        extensions: Sequence[Extension],
        fallback: Optional[RenderHTML] = None
) -> List[Extension]:
    """
    Returns the extensions extended with placeholders for every unknown type in the content.

    For HTML content the collaboration extension is removed, because ad hoc schema
    extensions cannot be merged safely between collaborators.
    """
    if not content:
        return list(extensions)

    if isinstance(content, str):
        unknown_elements = find_unknown_elements(content, extensions)
        if not unknown_elements:
            return list(extensions)

        # HTML cannot tell a block from a mark, so every element becomes a node.
        generated = generate_placeholder_extensions(
            (
                PlaceholderDescriptor(kind=ContentKind.NODE, tag_name=element.tag_name,
                                      attributes=element.attribute_names)
                for element in unknown_elements
            ),
            fallback,
        )
        collaboration = config_manager.get_nested("placeholder.collaboration_extension", "collaboration")
        logger.info(
            "Adding %d placeholder extension(s) for unknown HTML: %s",
            len(generated), [ext.name for ext in generated]
        )
        return [ext for ext in extensions if ext.name != collaboration] + generated

    schema = get_schema(extensions)
    unknown_content = get_unknown_content(content, schema)
    if not unknown_content:
        return list(extensions)

    generated = generate_placeholder_extensions(
        (
            PlaceholderDescriptor(kind=block.kind, tag_name=block.name, attributes=block.attributes)
            for block in unknown_content
        ),
        fallback,
    )
    logger.info(
        "Adding %d placeholder extension(s) for unknown JSON content: %s",
        len(generated), [ext.name for ext in generated]
    )
    return list(extensions) + generated
