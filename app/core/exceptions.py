from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """A referenced set, card, user or badge does not exist."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AccessDeniedError(HTTPException):
    """The caller may not read or mutate the target."""

    def __init__(self, detail: str = "Access denied") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidInputError(HTTPException):
    """Request passed schema validation but is semantically invalid."""

    def __init__(self, detail: str = "Invalid input") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class PersistenceError(HTTPException):
    """Storage layer failed while serving the request."""

    def __init__(self, detail: str = "Storage temporarily unavailable") -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail,
        )
