class ApiError(Exception):
    """The API answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class ApiUnauthorized(ApiError):
    """Missing or invalid token (401)."""

    pass


class ApiNotFound(ApiError):
    """Resource not found (404)."""

    pass


class ApiUnavailable(Exception):
    """The API could not be reached (timeout or transport failure)."""

    pass
