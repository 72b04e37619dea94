import json
import logging
from functools import lru_cache

import requests

from drawshare.credential import Credential, get_credential
from drawshare.errors import BackendError, ErrorCause
from drawshare.storage import ShareLink, StorageLocator
from drawshare.utils import get_settings

log = logging.getLogger(__name__)

EXPIRED_TOKEN_TAG = "expired_access_token"
LINK_EXISTS_TAG = "shared_link_already_exists"


def _error_tag(body) -> str | None:
    """Pull the ``.tag`` of a Dropbox error body, if there is one."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get(".tag")
    if isinstance(error, str):
        # the oauth2 endpoint reports errors as plain strings
        return error
    return None


def classify_error(response: requests.Response) -> BackendError:
    """
    Turn a failed Dropbox response into a ``BackendError``.

    Args:
        response: a response with a non-2xx status.

    Returns:
        The error, with ``cause`` set to ``expired_token`` for a 401 naming an
        expired access token, ``link_exists`` for a 409 naming an existing
        shared link and ``other`` for everything else.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    tag = _error_tag(body)
    summary = ""
    if isinstance(body, dict):
        summary = body.get("error_summary") or body.get("error_description") or ""
    if not summary:
        summary = response.text[:200]

    cause = ErrorCause.other
    if response.status_code == 401 and (
        tag == EXPIRED_TOKEN_TAG or summary.startswith(EXPIRED_TOKEN_TAG)
    ):
        cause = ErrorCause.expired_token
    elif response.status_code == 409 and (
        tag == LINK_EXISTS_TAG or summary.startswith(LINK_EXISTS_TAG)
    ):
        cause = ErrorCause.link_exists

    return BackendError(response.status_code, cause=cause, tag=tag, summary=summary)


def _require(body, key: str, kind: type = str):
    """Read a field a successful reply must carry, or fail like any other backend error."""
    value = body.get(key) if isinstance(body, dict) else None
    if not isinstance(value, kind) or (kind is str and not value):
        log.error(f"Dropbox reply is missing {key!r}")
        raise BackendError(200, summary=f"Reply had no {key}")
    return value


class DropboxClient:
    """Storage backend on top of the Dropbox HTTP API v2."""

    def __init__(
        self,
        credential: Credential,
        app_key: str | None = None,
        app_secret: str | None = None,
        api_url: str = "https://api.dropboxapi.com",
        content_url: str = "https://content.dropboxapi.com",
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.credential = credential
        self.app_key = app_key
        self.app_secret = app_secret
        self.api_url = api_url.rstrip("/")
        self.content_url = content_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, url: str, **kwargs) -> dict:
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            log.error(f"Request to {url} failed: {e}")
            raise BackendError(None, summary=str(e)) from e

        if not response.ok:
            error = classify_error(response)
            if error.cause == ErrorCause.other:
                log.error(f"Dropbox error from {url}: {error}")
            else:
                log.debug(f"Dropbox error from {url}: {error}")
            raise error

        try:
            body = response.json()
        except ValueError as e:
            log.error(f"Dropbox reply from {url} was not JSON: {response.text[:200]}")
            raise BackendError(
                response.status_code, summary="Reply was not JSON"
            ) from e
        if not isinstance(body, dict):
            raise BackendError(response.status_code, summary="Reply was not a JSON object")
        return body

    def _rpc(self, endpoint: str, arg: dict) -> dict:
        return self._post(
            f"{self.api_url}/2/{endpoint}",
            json=arg,
            headers={"Authorization": f"Bearer {self.credential.access_token}"},
        )

    def write(self, path: str, data: bytes, overwrite: bool = True) -> StorageLocator:
        """
        Upload bytes to a Dropbox path.

        :param path: destination path, e.g. ``/drawings/drawing-1.png``
        :param data: file contents
        :param overwrite: replace an existing file instead of failing
        :return: locator of the stored file
        """
        api_arg = {
            "path": path,
            "mode": "overwrite" if overwrite else "add",
            "autorename": False,
            "mute": True,
        }
        metadata = self._post(
            f"{self.content_url}/2/files/upload",
            data=data,
            headers={
                "Authorization": f"Bearer {self.credential.access_token}",
                "Content-Type": "application/octet-stream",
                "Dropbox-API-Arg": json.dumps(api_arg),
            },
        )
        log.debug(f"Uploaded {len(data)} bytes to {metadata.get('path_display')}")
        return StorageLocator(path=metadata.get("path_display") or path)

    def create_public_link(self, locator: StorageLocator) -> ShareLink:
        result = self._rpc(
            "sharing/create_shared_link_with_settings",
            {
                "path": locator.path,
                "settings": {"requested_visibility": "public"},
            },
        )
        return ShareLink(raw_url=_require(result, "url"))

    def list_links(
        self, locator: StorageLocator, direct_only: bool = True
    ) -> list[ShareLink]:
        result = self._rpc(
            "sharing/list_shared_links",
            {"path": locator.path, "direct_only": direct_only},
        )
        return [
            ShareLink(raw_url=_require(link, "url"))
            for link in _require(result, "links", list)
        ]

    def exchange_refresh_token(self, refresh_token: str) -> str:
        """Trade the refresh token for a short-lived access token."""
        result = self._post(
            f"{self.api_url}/oauth2/token",
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
            auth=(self.app_key, self.app_secret),
        )
        return _require(result, "access_token")


@lru_cache
def dropbox_client() -> DropboxClient:
    """Get the Dropbox client."""
    settings = get_settings()
    log.debug(f"Creating Dropbox client for {settings.dropbox_api_url}")
    return DropboxClient(
        get_credential(),
        app_key=settings.dropbox_app_key,
        app_secret=settings.dropbox_app_secret,
        api_url=settings.dropbox_api_url,
        content_url=settings.dropbox_content_url,
        timeout=settings.dropbox_timeout,
    )
