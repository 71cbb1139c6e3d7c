# src/docsalvage/recovery/probe.py
import logging
from typing import Any, Dict, List, Optional, Sequence

from bs4 import Tag

from docsalvage.model.core import LOWEST_PRIORITY, Extension, NodeExtension, ParseRule
from docsalvage.model.registry import ExtensionManager, get_schema_by_resolved_extensions
from .content_builder import create_document
from .model import UnknownElement

logger = logging.getLogger(__name__)

CAPTURE_EXTENSION_NAME = "docsalvage-unknown-placeholder-node"


class UnknownElementCapture:
    """
    Collects the elements the catch-all rule fires for during one probe.
    Each probe owns its own capture; it is never shared between calls.
    """

    def __init__(self):
        self._elements: List[Tag] = []

    def record(self, element: Tag) -> Optional[Dict[str, Any]]:
        """Parse-rule hook: remembers the element and matches it without attributes."""
        self._elements.append(element)
        return {}

    @property
    def elements(self) -> List[UnknownElement]:
        return [
            UnknownElement(tag_name=element.name.lower(), attribute_names=list(element.attrs.keys()))
            for element in self._elements
        ]

    def __len__(self) -> int:
        return len(self._elements)


def create_capture_extension(capture: UnknownElementCapture) -> NodeExtension:
    """A catch-all node type that matches any element no other rule claimed."""
    return NodeExtension(
        name=CAPTURE_EXTENSION_NAME,
        priority=LOWEST_PRIORITY,
        group="block",
        content="inline*",
        parse_rules=[ParseRule("*", get_attrs=capture.record)],
    )


def probe_unknown_elements(
        content: str,
        extensions: Sequence[Extension],
        capture: Optional[UnknownElementCapture] = None
) -> UnknownElementCapture:
    """
    Runs the content through the regular document build with a temporary catch-all
    extension appended, and returns the capture holding every unmatched element.

    Because the catch-all has the lowest priority it is the last rule tried for each
    element, so "unknown" means exactly what the parser itself cannot match.
    """
    capture = capture if capture is not None else UnknownElementCapture()

    # Resolve just like a real build would, plus the capturing extension
    temporary_extensions = ExtensionManager.resolve(list(extensions) + [create_capture_extension(capture)])
    schema = get_schema_by_resolved_extensions(temporary_extensions)

    # Only the capture side effect matters; the document is discarded
    create_document(content, schema)

    logger.debug("Probe found %d unknown element(s).", len(capture))
    return capture


def find_unknown_elements(content: str, extensions: Sequence[Extension]) -> List[UnknownElement]:
    """Lists every element instance in the HTML that no extension can parse (not deduplicated)."""
    return probe_unknown_elements(content, extensions).elements
