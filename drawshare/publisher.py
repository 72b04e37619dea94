import logging
import secrets
import time
from typing import Callable

from drawshare.errors import BackendError, UploadFailure
from drawshare.payload import ImagePayload
from drawshare.storage import StorageBackend, StorageLocator

log = logging.getLogger(__name__)


def current_millis() -> int:
    return time.time_ns() // 1_000_000


class Publisher:
    """
    Writes images to ``{directory}/{prefix}-{millis}.png``.

    Uploads overwrite: two uploads in the same millisecond share a path and
    the later one wins, unless ``unique_suffix`` is set.
    """

    def __init__(
        self,
        backend: StorageBackend,
        directory: str = "/drawings",
        prefix: str = "drawing",
        unique_suffix: bool = False,
        clock: Callable[[], int] = current_millis,
    ):
        self.backend = backend
        self.directory = directory.rstrip("/")
        self.prefix = prefix
        self.unique_suffix = unique_suffix
        self.clock = clock

    def path_for_upload(self) -> str:
        name = f"{self.prefix}-{self.clock()}"
        if self.unique_suffix:
            name = f"{name}-{secrets.token_hex(4)}"
        # every upload is stored as .png, whatever the source format
        return f"{self.directory}/{name}.png"

    def publish(self, image: ImagePayload) -> StorageLocator:
        path = self.path_for_upload()
        try:
            locator = self.backend.write(path, image.data, overwrite=True)
        except BackendError as e:
            raise UploadFailure(cause=e.cause) from e
        log.info(f"Published {image.mime_type} image to {locator.path}")
        return locator
