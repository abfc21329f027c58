"""Client-side verification call exceptions."""

from typing import Optional

from degendogs.api_models import ERROR_RETRYABLE, ErrorCode


class AuthError(Exception):
    """Base exception for the client's verification call.

    Carries an error code that maps to ErrorCode constants.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return ERROR_RETRYABLE.get(self.code, False)


class AuthEndpointNotFound(AuthError):
    """Every candidate endpoint answered 404/405."""

    def __init__(self, status: int, url: str, body_text: str = ""):
        self.status = status
        self.url = url
        lines = [f"Auth endpoint not found (HTTP {status}).", f"URL: {url}"]
        if body_text:
            lines.append(f"body: {body_text[:260]}")
        super().__init__(ErrorCode.AUTH_ENDPOINT_NOT_FOUND, "\n".join(lines))


class VerifyUnavailableError(AuthError):
    """No candidate endpoint could be reached."""

    def __init__(self, message: str = "Auth server not reachable."):
        super().__init__(ErrorCode.AUTH_UNREACHABLE, message)


class AuthFailedError(AuthError):
    """Endpoint answered with an error, or with an unusable body.

    server_error holds the endpoint's `error` code (e.g. "invalid_token").
    """

    def __init__(self, message: str, status: Optional[int] = None, server_error: Optional[str] = None):
        self.status = status
        self.server_error = server_error
        super().__init__(ErrorCode.AUTH_FAILED, message)

    @property
    def retryable(self) -> bool:
        if self.server_error:
            return ERROR_RETRYABLE.get(self.server_error, False)
        return False
