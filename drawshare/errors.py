from __future__ import annotations

from enum import Enum


class ErrorCause(str, Enum):
    """Why a storage backend call failed, as far as the share protocol cares."""

    expired_token = "expired_token"
    link_exists = "link_exists"
    other = "other"


class BackendError(Exception):
    """
    A failed call to the storage/sharing backend.

    :param status_code: HTTP status returned by the backend, None for network errors
    :param cause: classification the upload and link logic branch on
    :param tag: the backend's own machine-readable error tag, if any
    :param summary: human readable summary from the backend
    """

    def __init__(
        self,
        status_code: int | None,
        cause: ErrorCause = ErrorCause.other,
        tag: str | None = None,
        summary: str = "",
    ):
        self.status_code = status_code
        self.cause = cause
        self.tag = tag
        self.summary = summary
        super().__init__(f"{status_code} {tag or cause.value}: {summary}")


class ShareError(Exception):
    code = "internal_error"
    message = "An error occurred during upload."

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        cause: ErrorCause = ErrorCause.other,
    ):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        self.cause = cause
        super().__init__(self.message)


class ValidationFailure(ShareError):
    code = "invalid_image"
    message = "Invalid image data format."


class UploadFailure(ShareError):
    code = "upload_failed"
    message = "Failed to upload the image."


class LinkFailure(ShareError):
    code = "link_failed"
    message = "Failed to create a public link for the image."


class AuthFailure(ShareError):
    code = "auth_failed"
    message = "Storage credentials could not be refreshed."


__all__ = [
    "ErrorCause",
    "BackendError",
    "ShareError",
    "ValidationFailure",
    "UploadFailure",
    "LinkFailure",
    "AuthFailure",
]
