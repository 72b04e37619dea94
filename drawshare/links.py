import logging
from typing import Callable
from urllib.parse import urlsplit, urlunsplit

from drawshare.errors import BackendError, ErrorCause, LinkFailure
from drawshare.storage import StorageBackend, StorageLocator

log = logging.getLogger(__name__)


def normalize_share_url(url: str) -> str:
    """
    Turn a Dropbox preview link into a direct download link.

    Shared links come back with ``dl=0``, which opens the Dropbox viewer.
    ``dl=1`` serves the file itself. Other query parameters are kept as is.
    """
    parts = urlsplit(url)
    params = parts.query.split("&") if parts.query else []
    if any(p == "dl" or p.startswith("dl=") for p in params):
        params = ["dl=1" if p == "dl" or p.startswith("dl=") else p for p in params]
    else:
        params.append("dl=1")
    return urlunsplit(parts._replace(query="&".join(params)))


class LinkResolver:
    def __init__(
        self,
        backend: StorageBackend,
        normalize: Callable[[str], str] = normalize_share_url,
    ):
        self.backend = backend
        self.normalize = normalize

    def resolve_public_link(self, locator: StorageLocator) -> str:
        """
        Get a direct public URL for an uploaded file.

        A new shared link is created if possible. If the backend reports a link
        already exists, the first existing link for the path is reused.

        :param locator: a file the publisher has already written
        :return: the normalized URL
        :raises LinkFailure: if creation fails for another reason, or the
            existing link can't be found
        """
        try:
            link = self.backend.create_public_link(locator)
        except BackendError as e:
            if e.cause != ErrorCause.link_exists:
                raise LinkFailure(cause=e.cause) from e
            log.debug(f"Shared link already exists for {locator.path}")
            link = self._lookup(locator, conflict=e)

        return self.normalize(link.raw_url)

    def _lookup(self, locator: StorageLocator, conflict: BackendError):
        try:
            links = self.backend.list_links(locator, direct_only=True)
        except BackendError as e:
            raise LinkFailure(cause=e.cause) from e

        if not links:
            log.error(f"Backend reported an existing link for {locator.path} but listed none")
            raise LinkFailure(
                f"No existing shared link found for {locator.path}."
            ) from conflict
        return links[0]
