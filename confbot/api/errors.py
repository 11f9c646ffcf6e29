from fastapi import HTTPException, status

from confbot.core.errors import DomainError, ErrorKind

STATUS_BY_KIND = {
    ErrorKind.validation: status.HTTP_400_BAD_REQUEST,
    ErrorKind.authorization: status.HTTP_403_FORBIDDEN,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.state_conflict: status.HTTP_409_CONFLICT,
    ErrorKind.storage: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http(error: DomainError) -> HTTPException:
    """HTTP exception carrying the error sentinel as ``detail``."""
    return HTTPException(status_code=STATUS_BY_KIND[error.kind], detail=error.sentinel)
