# app/api/errors.py
from fastapi import HTTPException

from app.domain.errors import (
    AiUnavailable,
    DomainError,
    Forbidden,
    NotFound,
    ResourceBusy,
)


def http_error(e: Exception) -> HTTPException:
    """Wyjątek domenowy -> HTTPException z {code, message} w detail."""
    detail = e.to_detail() if isinstance(e, DomainError) else str(e)

    if isinstance(e, (NotFound, LookupError)):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(e, (Forbidden, PermissionError)):
        return HTTPException(status_code=403, detail=detail)
    if isinstance(e, ResourceBusy):
        return HTTPException(status_code=409, detail=detail)
    if isinstance(e, AiUnavailable):
        return HTTPException(status_code=503, detail=detail)
    return HTTPException(status_code=400, detail=detail)
