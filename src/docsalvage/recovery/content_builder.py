# src/docsalvage/recovery/content_builder.py
import logging
import reprlib
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, Union

from docsalvage.core.managers.config_manager import config_manager
from docsalvage.core.services.json_service import models_to_dicts
from docsalvage.model.builder import DOMParser, element_from_string
from docsalvage.model.errors import ContentError
from docsalvage.model.nodes import Fragment, Node
from docsalvage.model.schema import Schema
from .model import InvalidContentReport
from .validator import get_invalid_content

logger = logging.getLogger(__name__)

# Receives the invalid-content report; may return replacement content to build instead.
InvalidContentHandler = Callable[[InvalidContentReport], Any]


def create_node_from_content(
        content: Any,
        schema: Schema,
        as_slice: bool = True,
        parse_options: Optional[Dict[str, Any]] = None,
        on_error: Optional[InvalidContentHandler] = None,
        _attempt: int = 0
) -> Union[Node, Fragment]:
    """
    Builds a node or fragment from JSON or HTML content. Never raises on bad content.

    - A non-empty list becomes a Fragment of its nodes.
    - A mapping becomes a single Node.
    - A string is parsed as HTML, as a slice (Fragment) or a full document (Node).
    - Anything else is treated as empty content.

    When the JSON cannot be built against the schema, the invalid content is logged
    and the build falls back to empty content. An optional `on_error` handler may
    supply replacement content first; it is tried up to 'recovery.max_attempts' times.
    """
    if isinstance(content, (Mapping, list, tuple)):
        try:
            if isinstance(content, (list, tuple)) and content:
                return Fragment.from_array([schema.node_from_json(item) for item in content])
            return schema.node_from_json(content)
        except ContentError as error:
            report = get_invalid_content(content, schema, error=error)
            # reprlib keeps huge or deeply nested input out of the log line
            logger.warning(
                "Invalid content. Passed value: %s Error: %s Invalid content: %s",
                reprlib.repr(content), error, models_to_dicts(report.invalid_content)
            )

            max_attempts = config_manager.get_nested("recovery.max_attempts", 1)
            if on_error is not None and _attempt < max_attempts:
                replacement = on_error(report)
                if replacement is not None:
                    return create_node_from_content(
                        replacement, schema, as_slice, parse_options, on_error, _attempt + 1
                    )

            logger.warning("Falling back to empty content; the passed value is discarded.")
            return create_node_from_content("", schema, as_slice, parse_options)

    if isinstance(content, str):
        parser = DOMParser.from_schema(schema)
        try:
            if as_slice:
                return parser.parse_slice(element_from_string(content), parse_options).content
            return parser.parse(element_from_string(content), parse_options)
        except ContentError as error:
            if not content:
                raise
            logger.warning("Invalid markup. Passed value: %s Error: %s", reprlib.repr(content), error)
            return create_node_from_content("", schema, as_slice, parse_options)

    return create_node_from_content("", schema, as_slice, parse_options)


def create_document(
        content: Any,
        schema: Schema,
        parse_options: Optional[Dict[str, Any]] = None,
        on_error: Optional[InvalidContentHandler] = None
) -> Node:
    """Builds a complete document; a list of top-level nodes is wrapped in the top node."""
    result = create_node_from_content(
        content, schema, as_slice=False, parse_options=parse_options, on_error=on_error
    )
    if isinstance(result, Fragment):
        return schema.top_node_type.create(None, result)
    return result
