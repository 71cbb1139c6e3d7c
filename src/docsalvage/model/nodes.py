# src/docsalvage/model/nodes.py
from typing import Any, Dict, Iterable, Iterator, List, Optional


class Mark:
    """An inline annotation (bold, link, ...) attached to a node."""

    def __init__(self, type: Any, attrs: Optional[Dict[str, Any]] = None):
        self.type = type
        self.attrs = attrs or {}

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.name}
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mark):
            return NotImplemented
        return self.type.name == other.type.name and self.attrs == other.attrs

    def __repr__(self) -> str:
        return f"Mark({self.type.name!r}, {self.attrs!r})"


class Fragment:
    """An ordered sequence of sibling nodes."""

    def __init__(self, nodes: Optional[Iterable["Node"]] = None):
        self.content: List[Node] = list(nodes or [])

    @classmethod
    def from_array(cls, nodes: Iterable["Node"]) -> "Fragment":
        return cls(nodes)

    @classmethod
    def empty(cls) -> "Fragment":
        return cls()

    @property
    def child_count(self) -> int:
        return len(self.content)

    @property
    def text_content(self) -> str:
        return "".join(node.text_content for node in self.content)

    def to_json(self) -> List[Dict[str, Any]]:
        return [node.to_json() for node in self.content]

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)

    def __getitem__(self, index: int) -> "Node":
        return self.content[index]

    def __repr__(self) -> str:
        return f"Fragment({self.content!r})"


class Node:
    """
    A node in a built document tree. Text nodes carry `text` and never have content.
    """

    def __init__(
            self,
            type: Any,
            attrs: Optional[Dict[str, Any]] = None,
            content: Optional[Fragment] = None,
            marks: Optional[List[Mark]] = None,
            text: Optional[str] = None
    ):
        self.type = type
        self.attrs = attrs or {}
        self.content = content if content is not None else Fragment.empty()
        self.marks = marks or []
        self.text = text

    @property
    def is_text(self) -> bool:
        return self.text is not None

    @property
    def child_count(self) -> int:
        return self.content.child_count

    @property
    def text_content(self) -> str:
        if self.is_text:
            return self.text
        return self.content.text_content

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.name}
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        if self.content.child_count:
            data["content"] = self.content.to_json()
        if self.marks:
            data["marks"] = [mark.to_json() for mark in self.marks]
        if self.is_text:
            data["text"] = self.text
        return data

    def __repr__(self) -> str:
        if self.is_text:
            return f"Node(text={self.text!r}, marks={self.marks!r})"
        return f"Node({self.type.name!r}, attrs={self.attrs!r}, children={self.child_count})"


class Slice:
    """The result of a slice parse: a fragment that is not rooted in a top node."""

    def __init__(self, content: Fragment, open_start: int = 0, open_end: int = 0):
        self.content = content
        self.open_start = open_start
        self.open_end = open_end
