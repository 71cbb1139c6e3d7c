# src/docsalvage/core/services/json_service.py
import json
from typing import Any, Iterable

from pydantic import BaseModel


def to_json(data: Any, indent: int = 2, ensure_ascii: bool = False) -> str:
    """
    Serializes reports and document JSON for output.
    Pydantic models (or lists of them) are dumped in JSON mode first.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list) and data and all(isinstance(item, BaseModel) for item in data):
        data = [item.model_dump(mode="json") for item in data]
    return json.dumps(data, ensure_ascii=ensure_ascii, indent=indent)


def load_json_text(text: str) -> Any:
    """Parses JSON content; raises ValueError (json.JSONDecodeError) on bad input."""
    return json.loads(text)


def models_to_dicts(models: Iterable[BaseModel]) -> list:
    return [model.model_dump(mode="json") for model in models]
