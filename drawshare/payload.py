import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from typing import Literal

from PIL import Image, UnidentifiedImageError

from drawshare.errors import ValidationFailure

log = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:image/(png|jpeg);base64,(.+)$", re.DOTALL)

# formats Pillow reports for the mime types we accept
PILLOW_FORMATS = {"PNG", "JPEG"}


@dataclass(frozen=True)
class ImagePayload:
    mime_type: Literal["png", "jpeg"]
    data: bytes

    @property
    def content_type(self) -> str:
        return f"image/{self.mime_type}"


def decode_data_uri(image: str | None, max_size: int | None = None) -> ImagePayload:
    """
    Decode a ``data:image/(png|jpeg);base64,...`` string.

    :param image: the data URI sent by the client
    :param max_size: largest accepted decoded size in bytes, None for no limit
    :return: the decoded payload
    :raises ValidationFailure: if the image is missing, malformed, too large
        or not actually a png/jpeg image
    """
    if not image:
        raise ValidationFailure("Image data is missing.", code="missing_image")

    matches = DATA_URI_PATTERN.match(image)
    if not matches:
        raise ValidationFailure("Invalid image data format.")
    mime_type, encoded = matches.groups()

    try:
        data = base64.b64decode(encoded, validate=True)
    except binascii.Error:
        raise ValidationFailure("Invalid base64 image data.")

    if max_size is not None and len(data) > max_size:
        raise ValidationFailure("Image too large.", code="image_too_large")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except Image.DecompressionBombError:
        raise ValidationFailure("Image too large.", code="image_too_large")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise ValidationFailure("Image data could not be read.")

    if fmt not in PILLOW_FORMATS:
        raise ValidationFailure("Unsupported image format.")

    log.debug(f"Decoded {mime_type} image ({fmt}), {len(data)} bytes")
    return ImagePayload(mime_type=mime_type, data=data)
