# tests/recovery/test_validator.py
import copy

import pytest

from docsalvage.model.extensions.bold import DEFINITION as Bold
from docsalvage.model.extensions.document import DEFINITION as Document
from docsalvage.model.extensions.paragraph import DEFINITION as Paragraph
from docsalvage.model.extensions.text import DEFINITION as Text
from docsalvage.model.registry import get_schema
from docsalvage.recovery.model import ContentKind
from docsalvage.recovery.validator import Transformers, get_invalid_content, get_unknown_content


@pytest.fixture
def schema():
    """A schema that only knows doc, paragraph, text and bold."""
    return get_schema([Document, Paragraph, Text, Bold])


def test_valid_tree_yields_empty_report(schema):
    json = {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": "Hi", "marks": [{"type": "bold"}]}]},
        ],
    }
    assert get_unknown_content(json, schema) == []


def test_documented_example_order_and_flags():
    """Descendants are reported before the marks of their ancestor."""
    schema = get_schema([Document, Paragraph, Text])
    json = {
        "type": "doc",
        "content": [
            {"type": "paragraph", "marks": [{"type": "bogusMark"}], "content": [{"type": "bogusNode"}]},
        ],
    }

    report = get_unknown_content(json, schema)

    assert [block.name for block in report] == ["bogusNode", "bogusMark"]
    assert report[0].kind == ContentKind.NODE
    assert report[0].path == ["content", 0, "content", 0]
    assert report[0].invalid_parent_mark is True
    assert report[1].kind == ContentKind.MARK
    assert report[1].path == ["content", 0, "marks", 0]
    assert report[1].invalid_parent_node is False
    assert report[1].invalid_parent_mark is False


def test_marks_are_reported_last_first(schema):
    json = {"type": "paragraph", "marks": ["first", {"type": "bold"}, {"type": "second", "attrs": {"a": 1}}]}

    report = get_unknown_content(json, schema)

    assert [(block.name, block.path) for block in report] == [
        ("second", ["marks", 2]),
        ("first", ["marks", 0]),
    ]
    assert report[0].invalid_parent_mark is True
    assert report[1].invalid_parent_mark is False
    assert report[0].attributes == ["a"]
    assert report[1].attributes == []


def test_siblings_are_reported_rightmost_first(schema):
    json = {
        "type": "doc",
        "content": [
            {"type": "alpha"},
            {"type": "paragraph", "content": [{"type": "beta"}]},
            {"type": "gamma"},
        ],
    }

    report = get_unknown_content(json, schema)

    assert [block.name for block in report] == ["gamma", "beta", "alpha"]
    assert [block.path for block in report] == [
        ["content", 2],
        ["content", 1, "content", 0],
        ["content", 0],
    ]


def test_node_entry_follows_its_own_marks_and_children(schema):
    json = {
        "type": "callout",
        "attrs": {"tone": "warm", "icon": "bulb"},
        "marks": [{"type": "glow"}],
        "content": [{"type": "paragraph"}, {"type": "figure"}],
    }

    report = get_unknown_content(json, schema)

    assert [(block.kind, block.name) for block in report] == [
        (ContentKind.NODE, "figure"),
        (ContentKind.MARK, "glow"),
        (ContentKind.NODE, "callout"),
    ]
    callout = report[-1]
    assert callout.path == []
    assert callout.attributes == ["tone", "icon"]
    assert callout.invalid_parent_mark is True
    assert callout.invalid_parent_node is False
    assert report[0].invalid_parent_node is True


def test_invalid_parent_node_marks_exactly_the_nested_entries(schema):
    json = {
        "type": "doc",
        "content": [
            {"type": "outer", "content": [
                {"type": "paragraph", "content": [{"type": "inner", "marks": ["shine"]}]},
            ]},
            {"type": "paragraph", "content": [{"type": "loose"}]},
        ],
    }

    report = get_unknown_content(json, schema)
    node_paths = [block.path for block in report if block.kind == ContentKind.NODE]

    def nested_in_invalid_node(path):
        return any(
            len(path) > len(other) + 1 and path[:len(other) + 1] == [*other, "content"]
            for other in node_paths
        )

    assert report
    for block in report:
        assert block.invalid_parent_node is nested_in_invalid_node(block.path)


def test_top_level_list_prefixes_paths_and_keeps_order(schema):
    json = [
        {"type": "paragraph", "content": [{"type": "first"}]},
        {"type": "second"},
    ]

    report = get_unknown_content(json, schema)

    assert [(block.name, block.path) for block in report] == [
        ("first", [0, "content", 0]),
        ("second", [1]),
    ]


@pytest.mark.parametrize("json", [
    None,
    5,
    "text",
    {},
    {"content": "not a list"},
    {"type": "paragraph", "marks": [5, {"type": {}}, None]},
    {"type": {"nested": True}},
    [None, {"type": "paragraph"}],
])
def test_never_raises_on_malformed_input(schema, json):
    assert get_unknown_content(json, schema) == []


def test_node_without_type_is_not_reported_but_children_are(schema):
    json = {"content": [{"type": "ghost"}]}
    report = get_unknown_content(json, schema)
    assert [block.name for block in report] == ["ghost"]


# --- Invalid content report & transformers ---


def test_get_invalid_content_builds_handler_payload(schema):
    json = {"type": "doc", "content": [{"type": "ghost"}]}
    error = ValueError("boom")

    report = get_invalid_content(json, schema, error=error, source="import")

    assert report.json_content is json
    assert report.error is error
    assert report.transformers is Transformers
    assert [block.name for block in report.invalid_content] == ["ghost"]
    assert report.source == "import"


def test_remove_drops_outermost_invalid_blocks_and_keeps_siblings(schema):
    json = {
        "type": "doc",
        "content": [
            {"type": "ghost", "content": [{"type": "phantom"}]},
            {"type": "paragraph", "content": [
                {"type": "text", "text": "keep", "marks": [{"type": "bold"}, {"type": "shine"}]},
            ]},
            {"type": "wraith"},
        ],
    }
    original = copy.deepcopy(json)

    result = Transformers.remove(json, get_unknown_content(json, schema))

    assert json == original
    assert result == {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [
                {"type": "text", "text": "keep", "marks": [{"type": "bold"}]},
            ]},
        ],
    }
    assert get_unknown_content(result, schema) == []


def test_remove_on_top_level_list(schema):
    json = [{"type": "ghost"}, {"type": "paragraph"}, {"type": "wraith"}, {"type": "paragraph"}]

    result = Transformers.remove(json, get_unknown_content(json, schema))

    assert result == [{"type": "paragraph"}, {"type": "paragraph"}]


def test_remove_invalid_root_returns_none(schema):
    json = {"type": "ghost", "marks": ["shine"], "content": [{"type": "paragraph"}]}
    assert Transformers.remove(json, get_unknown_content(json, schema)) is None


def test_remove_edits_tuple_content(schema):
    json = {"type": "doc", "content": ({"type": "ghost"}, {"type": "paragraph"})}

    result = Transformers.remove(json, get_unknown_content(json, schema))

    assert result == {"type": "doc", "content": [{"type": "paragraph"}]}
    assert len(json["content"]) == 2


def test_only_string_attribute_names_are_reported(schema):
    json = {"type": "ghost", "attrs": {1: "x", "tone": "warm", None: "y"}}

    [block] = get_unknown_content(json, schema)

    assert block.attributes == ["tone"]


def _nested(depth, leaf):
    json = leaf
    for _ in range(depth):
        json = {"type": "paragraph", "content": [json]}
    return json


def test_deeply_nested_tree_is_walked_without_recursion_limit(schema):
    depth = 5000
    json = _nested(depth, {"type": "ghost", "marks": ["shine"]})

    report = get_unknown_content(json, schema)

    assert [(block.kind, block.name) for block in report] == [(ContentKind.MARK, "shine"), (ContentKind.NODE, "ghost")]
    assert report[1].path == ["content", 0] * depth

    # Walked by hand: comparing trees this deep with == would itself recurse
    node = Transformers.remove(json, report)
    for _ in range(depth - 1):
        node = node["content"][0]
    assert node["content"] == []
