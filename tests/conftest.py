import io

import pytest
from PIL import Image


def make_png(width: int, height: int, pad_to: int = 8192) -> bytes:
    """
    Solid PNG padded with trailing bytes so it clears the minimum filesize.
    Pillow only reads the header, so the padding does not affect decoding.
    """
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buf, "PNG")
    data = buf.getvalue()
    if len(data) < pad_to:
        data += b"\0" * (pad_to - len(data))
    return data


@pytest.fixture
def png():
    return make_png
