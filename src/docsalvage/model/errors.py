# src/docsalvage/model/errors.py
from typing import Optional


class ContentError(ValueError):
    """Base class for all errors raised while building document content."""


class SchemaError(ContentError):
    """Raised when a schema cannot be derived from a set of extensions."""


class MalformedContentError(ContentError):
    """Raised when JSON content is not shaped like a node (e.g. a missing 'type')."""


class SchemaRejectionError(ContentError):
    """
    Raised when strict construction meets a node or mark type the schema does not know.
    Carries the kind ('node' or 'mark') and the offending type name.
    """

    def __init__(self, kind: str, name: Optional[str]):
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind} type: {name}")
