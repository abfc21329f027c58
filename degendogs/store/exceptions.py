"""
Gated write exceptions.

WriteRejected is raised before anything touches the store; WriteFailed
means the transaction did not commit and can be retried.
"""

from degendogs.api_models import ERROR_RETRYABLE, ErrorCode


class StoreError(Exception):
    """Base exception for gated writes.

    Carries an error code that maps to ErrorCode constants.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return ERROR_RETRYABLE.get(self.code, False)


class WriteRejected(StoreError):
    """Caller is not allowed to write, or the content is invalid."""

    @classmethod
    def not_signed_in(cls) -> "WriteRejected":
        return cls(ErrorCode.NOT_SIGNED_IN, "Sign in to continue.")

    @classmethod
    def not_holder(cls, action: str) -> "WriteRejected":
        return cls(ErrorCode.NOT_HOLDER, f"Only holders can {action}.")

    @classmethod
    def store_unavailable(cls) -> "WriteRejected":
        return cls(ErrorCode.STORE_UNAVAILABLE, "Store is not configured yet.")

    @classmethod
    def empty(cls, what: str) -> "WriteRejected":
        return cls(ErrorCode.EMPTY_CONTENT, f"{what} must not be empty.")

    @classmethod
    def too_long(cls, what: str, limit: int) -> "WriteRejected":
        return cls(ErrorCode.CONTENT_TOO_LONG, f"{what} exceeds {limit} characters.")


class PostNotFound(StoreError):
    """Target post does not exist."""

    def __init__(self, post_id: str):
        self.post_id = post_id
        super().__init__(ErrorCode.POST_NOT_FOUND, f"Post not found: {post_id}")


class WriteFailed(StoreError):
    """Transaction failed and was rolled back."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.WRITE_FAILED, message)
