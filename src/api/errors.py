from typing import Any, Optional


class ApiError(Exception):
    """
    The backend answered with an error status.
    `message` is the server supplied reason when there is one.
    """

    def __init__(self, status_code: int, message: str, payload: Optional[Any] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload


class SessionInvalidError(ApiError):
    """
    401 from any endpoint. The persisted session is already cleared
    when this reaches the caller.
    """
