import logging
from typing import Callable, TypeVar

from drawshare.credential import Credential
from drawshare.errors import AuthFailure, BackendError, ErrorCause

log = logging.getLogger(__name__)

T = TypeVar("T")


def is_expired_token(error: Exception) -> bool:
    return getattr(error, "cause", None) == ErrorCause.expired_token


class SessionGuard:
    """
    Runs an operation with the current access token, refreshing it once.

    Only failures classified as an expired access token are retried. The
    retry happens at most once per call, so a refresh token that keeps
    producing rejected access tokens can't loop.
    """

    def __init__(self, credential: Credential, exchange: Callable[[str], str]):
        self.credential = credential
        self.exchange = exchange

    def with_session(self, op: Callable[[], T]) -> T:
        stale_token = self.credential.access_token
        try:
            return op()
        except Exception as e:
            if not is_expired_token(e):
                raise
            log.info("Access token expired, refreshing before retry")

        try:
            self.credential.refresh(stale_token, self.exchange)
        except (BackendError, ValueError) as e:
            log.error(f"Access token refresh failed: {e}")
            raise AuthFailure(cause=ErrorCause.expired_token) from e

        try:
            return op()
        except Exception as e:
            if not is_expired_token(e):
                raise
            log.error("Access token still rejected after refresh")
            raise AuthFailure(cause=ErrorCause.expired_token) from e
