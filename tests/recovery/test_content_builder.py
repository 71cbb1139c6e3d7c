# tests/recovery/test_content_builder.py
import logging
from unittest.mock import MagicMock

import pytest

from docsalvage.core.managers.config_manager import config_manager
from docsalvage.model.nodes import Fragment, Node
from docsalvage.model.registry import ExtensionRegistry, get_schema
from docsalvage.recovery.content_builder import create_document, create_node_from_content

VALID_DOC = {
    "type": "doc",
    "content": [
        {"type": "heading", "attrs": {"level": 2}, "content": [{"type": "text", "text": "Title"}]},
        {"type": "paragraph", "content": [
            {"type": "text", "text": "Hello "},
            {"type": "text", "text": "world", "marks": [{"type": "bold"}]},
        ]},
    ],
}


@pytest.fixture
def schema():
    return get_schema(ExtensionRegistry.get_builtin_extensions())


def test_builds_node_from_valid_json(schema):
    node = create_node_from_content(VALID_DOC, schema)

    assert isinstance(node, Node)
    assert node.to_json() == VALID_DOC


def test_builds_fragment_from_json_list(schema):
    items = [
        {"type": "paragraph", "content": [{"type": "text", "text": "a"}]},
        {"type": "paragraph"},
    ]

    result = create_node_from_content(items, schema)

    assert isinstance(result, Fragment)
    assert result.to_json() == items


def test_parses_html_as_slice_by_default(schema):
    result = create_node_from_content("<p>Hello <strong>world</strong></p>", schema)

    assert isinstance(result, Fragment)
    assert result.to_json() == [
        {"type": "paragraph", "content": [
            {"type": "text", "text": "Hello "},
            {"type": "text", "text": "world", "marks": [{"type": "bold"}]},
        ]},
    ]


def test_parses_html_as_document_when_not_slicing(schema):
    result = create_node_from_content("<p>Hi</p>", schema, as_slice=False)

    assert isinstance(result, Node)
    assert result.type.name == "doc"
    assert result.content[0].type.name == "paragraph"


@pytest.mark.parametrize("content", [
    None,
    "",
    42,
    {"content": []},
    [],
    [{"type": "paragraph"}, {"type": "bogusNode"}],
    {"type": "doc", "content": [{"type": "paragraph", "marks": [{"type": "bogusMark"}]}]},
    {"type": "doc", "content": "oops"},
    {"type": "bogus", "attrs": {1: "x"}},
    {"type": "doc", "content": ({"type": "paragraph"},)},
])
def test_never_raises(schema, content):
    result = create_node_from_content(content, schema)
    assert isinstance(result, (Node, Fragment))


def test_invalid_json_falls_back_to_empty_content_and_logs(schema, caplog):
    content = [{"type": "paragraph"}, {"type": "bogusNode"}]

    with caplog.at_level(logging.WARNING, logger="docsalvage.recovery.content_builder"):
        result = create_node_from_content(content, schema)

    assert isinstance(result, Fragment)
    assert result.child_count == 0
    assert "Invalid content" in caplog.text
    assert "bogusNode" in caplog.text


def test_invalid_json_document_build_yields_empty_doc(schema):
    doc = create_document({"type": "doc", "content": [{"type": "callout"}]}, schema)

    assert doc.type.name == "doc"
    assert doc.child_count == 0


def test_create_document_wraps_fragment_in_top_node(schema):
    doc = create_document([{"type": "paragraph"}, {"type": "paragraph"}], schema)

    assert doc.type.name == "doc"
    assert doc.child_count == 2


def test_on_error_handler_can_repair_content(schema):
    content = {
        "type": "doc",
        "content": [
            {"type": "callout", "content": [{"type": "text", "text": "lost"}]},
            {"type": "paragraph", "content": [{"type": "text", "text": "kept"}]},
        ],
    }

    def handler(report):
        assert [block.name for block in report.invalid_content] == ["callout"]
        return report.transformers.remove(report.json_content, report.invalid_content)

    doc = create_node_from_content(content, schema, on_error=handler)

    assert doc.to_json() == {
        "type": "doc",
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": "kept"}]}],
    }


def test_on_error_returning_none_uses_empty_fallback(schema):
    handler = MagicMock(return_value=None)

    result = create_node_from_content([{"type": "ghost"}], schema, on_error=handler)

    handler.assert_called_once()
    assert isinstance(result, Fragment)
    assert result.child_count == 0


@pytest.fixture
def overridden_config():
    yield config_manager
    config_manager.reset()


def test_on_error_retries_are_limited(schema, overridden_config):
    overridden_config.override("recovery.max_attempts", "2")
    handler = MagicMock(return_value=[{"type": "still-unknown"}])

    result = create_node_from_content([{"type": "ghost"}], schema, on_error=handler)

    assert handler.call_count == 2
    assert result.child_count == 0


def _nested(depth, leaf):
    json = leaf
    for _ in range(depth):
        json = {"type": "paragraph", "content": [json]}
    return json


@pytest.mark.parametrize("leaf", [
    {"type": "text", "text": "deep"},
    {"type": "ghost"},
])
def test_deeply_nested_json_falls_back_instead_of_raising(schema, caplog, leaf):
    with caplog.at_level(logging.WARNING, logger="docsalvage.recovery.content_builder"):
        result = create_node_from_content(_nested(5000, leaf), schema)

    assert isinstance(result, Fragment)
    assert result.child_count == 0
    assert "nested too deeply" in caplog.text


def test_deeply_nested_markup_falls_back_instead_of_raising(schema, caplog):
    html = "<blockquote>" * 5000 + "deep" + "</blockquote>" * 5000

    with caplog.at_level(logging.WARNING, logger="docsalvage.recovery.content_builder"):
        doc = create_document(html, schema)

    assert doc.type.name == "doc"
    assert doc.child_count == 0
    assert "Invalid markup" in caplog.text
