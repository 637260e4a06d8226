from typing import Any, Mapping, Optional

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    message: str = "Operation successful",
    status_code: int = status.HTTP_200_OK,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """
    Single source of truth for ALL JSON API responses.
    Automatically sets status = "success" if < 400 else "error".
    Errors carry an empty `data` object unless one is given.
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "status_code": status_code,
            "status": "success" if status_code < 400 else "error",
            "message": message,
            "data": jsonable_encoder(data) if data is not None else {},
        },
        headers=dict(headers) if headers else None,
    )


def csv_response(content: str, filename: str) -> Response:
    """File download for CSV exports; everything else goes through api_response."""
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
