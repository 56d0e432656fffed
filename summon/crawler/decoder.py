# summon/crawler/decoder.py
# Responsibility: Read pixel dimensions from an image file header.

from typing import BinaryIO, Tuple

from PIL import Image, UnidentifiedImageError

from summon.errors import DecodeFailure


def decode_dimensions(fp: BinaryIO, url: str = "") -> Tuple[int, int]:
    """
    Returns (width, height) of the image stored in `fp`.
    Pillow opens lazily, so only the header is read.

    Raises:
        DecodeFailure: Unknown format, truncated header, or non-positive size.
    """
    fp.seek(0)
    try:
        with Image.open(fp) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        raise DecodeFailure(url, f"Undecodable image: {e}") from e

    if width <= 0 or height <= 0:
        raise DecodeFailure(url, f"Invalid dimensions {width}x{height}")
    return width, height
