# contest_portal/api/responses.py
from typing import Any, Dict

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, list):
        return [_dump(d) for d in data]
    if isinstance(data, dict):
        return {k: _dump(v) for k, v in data.items()}
    return jsonable_encoder(data)


def ok(data: Any = None, message: str | None = None) -> Dict[str, Any]:
    """Koperta sukcesu: {success: true, data?, message?}."""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = _dump(data)
    if message:
        body["message"] = message
    return body


def fail(error: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return body
