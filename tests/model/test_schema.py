# tests/model/test_schema.py
import pytest

from docsalvage.model.core import DEFAULT_PRIORITY, LOWEST_PRIORITY, AttributeSpec, Extension, NodeExtension
from docsalvage.model.errors import MalformedContentError, SchemaError, SchemaRejectionError
from docsalvage.model.extensions.bold import DEFINITION as Bold
from docsalvage.model.extensions.document import DEFINITION as Document
from docsalvage.model.extensions.heading import DEFINITION as Heading
from docsalvage.model.extensions.paragraph import DEFINITION as Paragraph
from docsalvage.model.extensions.text import DEFINITION as Text
from docsalvage.model.registry import ExtensionManager, ExtensionRegistry, get_schema


@pytest.fixture
def schema():
    return get_schema([Document, Paragraph, Text, Heading, Bold])


def test_schema_exposes_valid_name_sets(schema):
    assert schema.node_type_names == {"doc", "paragraph", "text", "heading"}
    assert schema.mark_type_names == {"bold"}


def test_schema_requires_doc_and_text():
    with pytest.raises(SchemaError):
        get_schema([Paragraph, Text])
    with pytest.raises(SchemaError):
        get_schema([Document, Paragraph])


def test_node_from_json_rejects_unknown_node_type(schema):
    with pytest.raises(SchemaRejectionError) as exc_info:
        schema.node_from_json({"type": "doc", "content": [{"type": "callout"}]})

    assert exc_info.value.kind == "node"
    assert exc_info.value.name == "callout"


def test_node_from_json_rejects_unknown_mark_type(schema):
    json = {"type": "paragraph", "content": [{"type": "text", "text": "x", "marks": ["shine"]}]}

    with pytest.raises(SchemaRejectionError) as exc_info:
        schema.node_from_json(json)

    assert exc_info.value.kind == "mark"
    assert exc_info.value.name == "shine"


@pytest.mark.parametrize("json", [
    None,
    "paragraph",
    {},
    {"attrs": {}},
    {"type": "text"},
    {"type": "paragraph", "content": "text"},
    {"type": "paragraph", "attrs": ["level"]},
    {"type": "paragraph", "marks": [{"attrs": {}}]},
])
def test_node_from_json_rejects_malformed_json(schema, json):
    with pytest.raises(MalformedContentError):
        schema.node_from_json(json)


def test_node_from_json_computes_declared_attrs(schema):
    node = schema.node_from_json({"type": "heading", "attrs": {"level": 3, "color": "red"}})
    assert node.attrs == {"level": 3}

    default = schema.node_from_json({"type": "heading"})
    assert default.attrs == {"level": 1}


def test_bare_mark_names_are_accepted(schema):
    node = schema.node_from_json({"type": "text", "text": "x", "marks": ["bold"]})
    assert node.to_json() == {"type": "text", "text": "x", "marks": [{"type": "bold"}]}


def test_first_extension_of_a_name_wins():
    custom = NodeExtension(name="paragraph", priority=LOWEST_PRIORITY, attributes={"x": AttributeSpec()})
    schema = get_schema([Document, Text, custom, Paragraph])

    assert schema.nodes["paragraph"].extension is Paragraph


def test_resolve_sorts_by_priority_and_keeps_ties_stable():
    low = Extension("low", priority=LOWEST_PRIORITY)
    first = Extension("first")
    second = Extension("second")
    high = Extension("high", priority=5000)

    resolved = ExtensionManager.resolve([low, first, second, high])

    assert [ext.name for ext in resolved] == ["high", "first", "second", "low"]
    assert first.priority == DEFAULT_PRIORITY


def test_resolve_warns_about_duplicate_names(caplog):
    ExtensionManager.resolve([Extension("dup"), Extension("dup")])
    assert "Duplicate extension names" in caplog.text


def test_registry_discovers_builtin_extensions():
    names = {extension.name for extension in ExtensionRegistry.get_builtin_extensions()}

    assert {"doc", "text", "paragraph", "heading", "blockquote", "bold", "italic", "link", "collaboration"} <= names
    assert ExtensionRegistry.get("bold") is Bold
