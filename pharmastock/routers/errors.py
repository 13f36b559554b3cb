from fastapi import HTTPException, status

from pharmastock.core.exceptions import (
    AlreadyDisposedError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    PharmaStockError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (InsufficientStockError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyDisposedError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_exception(exc: PharmaStockError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        return HTTPException(
            status_code=status_code,
            detail={"error": "Failed to update inventory", "code": exc.code},
        )
    return HTTPException(status_code=status_code, detail=exc.to_detail())
