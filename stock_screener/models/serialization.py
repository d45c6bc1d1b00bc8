"""Serialization helpers for the transport layer."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from pydantic import BaseModel


def serialize_model(model: BaseModel) -> Dict[str, Any]:
    """Return a JSON-compatible dict using the camelCase field aliases."""

    return model.model_dump(mode="json", by_alias=True)


def serialize_many(models: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [serialize_model(model) for model in models]


__all__ = ["serialize_many", "serialize_model"]
