"""
Token verification exceptions.

Invalid tokens are trust failures (401, re-authenticate); key resolution
failures are dependency failures (500, retryable).
"""

from degendogs.api_models import ErrorCode


class TokenError(Exception):
    """Base exception for identity token verification.

    Carries an error code that maps to ErrorCode constants.
    The caller is responsible for converting this to an HTTP response.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class InvalidTokenError(TokenError):
    """Token is well-formed but untrustworthy.

    Used for:
    - Signature mismatch
    - Disallowed algorithm
    - Wrong issuer or audience (domain binding)
    - Expired or not-yet-valid token
    """

    def __init__(self, message: str = "Token is invalid"):
        super().__init__(ErrorCode.INVALID_TOKEN, message)

    @classmethod
    def wrong_audience(cls, audience, domain: str) -> "InvalidTokenError":
        return cls(f"audience mismatch: token has {audience!r}, expected {domain!r}")


class MalformedTokenError(TokenError):
    """Token could not be parsed at all."""

    def __init__(self, message: str = "Token is malformed"):
        super().__init__(ErrorCode.MALFORMED_TOKEN, message)

    @classmethod
    def parse_failed(cls, reason: str) -> "MalformedTokenError":
        return cls(f"token parse failed: {reason}")


class KeyResolutionError(TokenError):
    """Signing keys could not be fetched or understood."""

    def __init__(self, message: str = "Signing key resolution failed"):
        super().__init__(ErrorCode.VERIFICATION_FAILED, message)
