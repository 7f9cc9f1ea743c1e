"""Response envelope helpers shared by all endpoints."""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

from app.utils.pagination import Pagination


def success(
    data: Any = None,
    message: Optional[str] = None,
    meta: Optional[dict] = None,
) -> dict:
    """Build ``{success: true, data, message?, meta?}``."""
    body: dict[str, Any] = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    if meta:
        body["meta"] = jsonable_encoder(meta)
    return body


def paginated(items: list, pagination: Pagination, message: Optional[str] = None) -> dict:
    """Build a paginated envelope with ``pagination`` and ``meta`` blocks."""
    body = success(items, message)
    body["pagination"] = pagination.to_response()
    body["meta"] = pagination.to_meta()
    return body
