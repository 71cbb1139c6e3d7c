# src/docsalvage/recovery/validator.py
import logging
from typing import Any, Collection, List, Mapping, Optional, Sequence, Tuple

from docsalvage.model.schema import Schema
from .model import ContentKind, InvalidContentBlock, InvalidContentReport, PathSegment

logger = logging.getLogger(__name__)

# (item, path, invalid_parent_node, invalid_parent_mark)
_Pending = Tuple[Any, List[PathSegment], bool, bool]


def _mark_name(mark: Any) -> Optional[str]:
    if isinstance(mark, str):
        return mark
    if isinstance(mark, Mapping):
        return mark.get("type")
    return None


def _attribute_names(item: Any) -> List[str]:
    attrs = item.get("attrs") if isinstance(item, Mapping) else None
    if not isinstance(attrs, Mapping):
        return []
    return [name for name in attrs.keys() if isinstance(name, str)]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _check_for_unknown_content(
        json: Any,
        valid_nodes: Collection[str],
        valid_marks: Collection[str],
        path: List[PathSegment]
) -> List[InvalidContentBlock]:
    """
    Collects the invalid blocks of one node and its subtree.

    Result order: the children's blocks (last child first), then this node's invalid
    marks (last mark first), then this node itself. The walk uses an explicit stack,
    so arbitrarily deep trees are reported without hitting the recursion limit: it
    visits in the exact reverse of that order (node, marks first to last, children
    first to last) and reverses once at the end.
    """
    found: List[InvalidContentBlock] = []
    pending: List[_Pending] = [(json, list(path), False, False)]

    while pending:
        item, item_path, invalid_parent_node, invalid_parent_mark = pending.pop()
        if not isinstance(item, Mapping):
            continue

        marks = item.get("marks")
        content = item.get("content")
        type_name = item.get("type")

        mark_blocks: List[InvalidContentBlock] = []
        if _is_sequence(marks):
            for index, mark in enumerate(marks):
                name = _mark_name(mark)
                if not isinstance(name, str) or not name or name in valid_marks:
                    continue

                mark_blocks.append(InvalidContentBlock(
                    kind=ContentKind.MARK,
                    name=name,
                    attributes=_attribute_names(mark),
                    path=[*item_path, "marks", index],
                    invalid_parent_node=invalid_parent_node,
                    invalid_parent_mark=invalid_parent_mark,
                ))
                invalid_parent_mark = True

        if isinstance(type_name, str) and type_name and type_name not in valid_nodes:
            found.append(InvalidContentBlock(
                kind=ContentKind.NODE,
                name=type_name,
                attributes=_attribute_names(item),
                path=list(item_path),
                invalid_parent_node=invalid_parent_node,
                invalid_parent_mark=invalid_parent_mark,
            ))
            invalid_parent_node = True
        found.extend(mark_blocks)

        if _is_sequence(content):
            # Pushed last-first so the first child is walked first
            for index in reversed(range(len(content))):
                pending.append((
                    content[index],
                    [*item_path, "content", index],
                    invalid_parent_node,
                    invalid_parent_mark,
                ))

    found.reverse()
    return found


def get_unknown_content(json: Any, schema: Schema) -> List[InvalidContentBlock]:
    """
    Lists every node and mark in the JSON content whose type the schema does not know.

    Accepts a single node or a list of top-level nodes; in the list case each path
    starts with the item's index and items are reported in order. Never raises.
    """
    valid_nodes = schema.node_type_names
    valid_marks = schema.mark_type_names

    if isinstance(json, (list, tuple)):
        return [
            block
            for index, item in enumerate(json)
            for block in _check_for_unknown_content(item, valid_nodes, valid_marks, path=[index])
        ]
    return _check_for_unknown_content(json, valid_nodes, valid_marks, path=[])


def _copy_tree(json: Any) -> Any:
    """
    Copies JSON content into plain dicts and lists, so every container on a path can
    be edited in place. Tuples become lists; leaf values are shared.
    """
    def clone(value: Any) -> Any:
        if isinstance(value, Mapping):
            return dict(value)
        if _is_sequence(value):
            return list(value)
        return value

    root = clone(json)
    pending = [root] if isinstance(root, (dict, list)) else []
    while pending:
        container = pending.pop()
        keys = list(container.keys()) if isinstance(container, dict) else range(len(container))
        for key in keys:
            child = clone(container[key])
            container[key] = child
            if isinstance(child, (dict, list)):
                pending.append(child)
    return root


def _unset(document: Any, path: List[PathSegment]) -> Any:
    """Deletes the element at `path`; an empty path removes the whole document."""
    if not path:
        return None

    parent = document
    try:
        for segment in path[:-1]:
            parent = parent[segment]
        del parent[path[-1]]
    except (KeyError, IndexError, TypeError) as e:
        logger.warning("Could not remove invalid content at path %s: %s", path, e)
    return document


class Transformers:
    """Strategies an invalid-content handler can apply to the offending JSON."""

    @staticmethod
    def remove(json: Any, invalid_content: List[InvalidContentBlock]) -> Any:
        """
        Remove every invalid block that has no invalid parent node. This is a
        destructive action; valid siblings stay in place.

        Returns a modified copy made of plain dicts and lists; the input is never
        mutated. If the root node itself is invalid the result is None.
        """
        result = _copy_tree(json)
        blocks = [block for block in invalid_content if not block.invalid_parent_node]

        # Within one top-level node the report order is already safe for deletion
        # (last sibling first); top-level items come in forward order.
        if isinstance(result, list):
            blocks = sorted(blocks, key=lambda block: block.path[0], reverse=True)

        for block in blocks:
            if result is None:
                break
            result = _unset(result, block.path)

        return result


def get_invalid_content(
        json: Any,
        schema: Schema,
        error: Optional[Exception] = None,
        **extra: Any
) -> InvalidContentReport:
    """Builds the report passed to invalid-content handlers."""
    return InvalidContentReport(
        json_content=json,
        invalid_content=get_unknown_content(json, schema),
        error=error,
        transformers=Transformers,
        **extra,
    )
