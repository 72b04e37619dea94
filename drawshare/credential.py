import logging
import threading
from functools import lru_cache
from typing import Callable

from drawshare.utils import get_settings

log = logging.getLogger(__name__)


class Credential:
    """
    Dropbox token pair shared by every request in the process.

    The access token lives behind a lock and is replaced in memory when it
    expires; nothing is written back to the environment.
    """

    def __init__(self, access_token: str, refresh_token: str | None = None):
        self._access_token = access_token
        self.refresh_token = refresh_token
        self._lock = threading.Lock()

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    def refresh(self, stale_token: str, exchange: Callable[[str], str]) -> str:
        """
        Replace an expired access token.

        If another request already replaced ``stale_token`` while we waited on
        the lock, its token is returned and no exchange is made.

        Args:
            stale_token: the access token the caller saw rejected.
            exchange: trades the refresh token for a new access token.

        Returns:
            The access token to retry with.
        """
        with self._lock:
            if self._access_token != stale_token:
                log.debug("Access token already refreshed by another request")
                return self._access_token
            if not self.refresh_token:
                raise ValueError("No refresh token configured")
            log.info("Refreshing Dropbox access token")
            self._access_token = exchange(self.refresh_token)
            return self._access_token


@lru_cache
def get_credential() -> Credential:
    """Get the process-wide credential built from settings."""
    settings = get_settings()
    return Credential(
        access_token=settings.dropbox_access_token,
        refresh_token=settings.dropbox_refresh_token,
    )
