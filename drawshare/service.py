import logging
from functools import lru_cache

from drawshare.dropbox_api import dropbox_client
from drawshare.links import LinkResolver
from drawshare.payload import ImagePayload
from drawshare.publisher import Publisher
from drawshare.session import SessionGuard
from drawshare.storage import StorageLocator
from drawshare.utils import get_settings

log = logging.getLogger(__name__)


class ImageSharer:
    """Uploads an image and returns its public URL under one session."""

    def __init__(self, publisher: Publisher, resolver: LinkResolver, guard: SessionGuard):
        self.publisher = publisher
        self.resolver = resolver
        self.guard = guard

    def share(self, image: ImagePayload) -> str:
        uploaded: list[StorageLocator] = []

        def publish_and_link() -> str:
            # a retry after a link failure reuses the file already written
            if not uploaded:
                uploaded.append(self.publisher.publish(image))
            return self.resolver.resolve_public_link(uploaded[0])

        url = self.guard.with_session(publish_and_link)
        log.debug(f"Shared {uploaded[0].path} as {url}")
        return url


@lru_cache
def get_image_sharer() -> ImageSharer:
    """Build the sharer for the configured Dropbox account."""
    settings = get_settings()
    client = dropbox_client()
    return ImageSharer(
        publisher=Publisher(
            client,
            directory=settings.upload_directory,
            prefix=settings.upload_prefix,
            unique_suffix=settings.unique_suffix,
        ),
        resolver=LinkResolver(client),
        guard=SessionGuard(client.credential, client.exchange_refresh_token),
    )
