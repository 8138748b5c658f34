"""
Serializers for consistent API responses.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


def to_payload(value: Any) -> Any:
    """
    Turn response records (pydantic models, lists and dicts of them) into
    JSON-ready structures.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_payload(item) for item in value]
    if isinstance(value, tuple):
        return [to_payload(item) for item in value]
    if isinstance(value, dict):
        return {key: to_payload(item) for key, item in value.items()}
    return value


def success_response(data: Any, message: str | None = None) -> dict[str, Any]:
    response = {"status": "success", "data": to_payload(data), "error": None}
    if message:
        response["message"] = message
    return response


def error_response(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    response = {"status": "error", "data": None, "error": error}
    if details:
        response.update(details)
    return response
