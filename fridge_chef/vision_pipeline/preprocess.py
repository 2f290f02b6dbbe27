import base64
import binascii
import logging
import os
from io import BytesIO
from typing import Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, str, os.PathLike]


class ImageDecodeError(ValueError):
    """Source could not be turned into pixels."""


def _read_source(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)

    source = os.fspath(source)
    if source.startswith("data:"):
        # data:image/jpeg;base64,....
        header, _, payload = source.partition(",")
        if ";base64" not in header:
            raise ImageDecodeError("Only base64 data URLs are supported")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 payload in data URL: {e}") from e

    try:
        with open(source, "rb") as f:
            return f.read()
    except OSError as e:
        raise ImageDecodeError(f"Cannot read image: {source}") from e


def decode_image(source: ImageSource) -> np.ndarray:
    """
    Decode encoded bytes, a file path or a data URL into an RGB uint8 array (H, W, 3).

    Phone photos are rotated according to their EXIF orientation first, so the
    pixels match what the user saw when taking the picture.
    """
    data = _read_source(source)
    if not data:
        raise ImageDecodeError("Empty image data")

    try:
        with Image.open(BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            rgb = np.asarray(img.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e

    logger.debug("Decoded image %sx%s", rgb.shape[1], rgb.shape[0])
    return rgb


def to_model_input(image: np.ndarray, input_size: int = 640) -> np.ndarray:
    """
    Resize an RGB image to the detector's square input, normalize to [0, 1].

    Returns float32 shaped (1, input_size, input_size, 3).
    """
    if image is None or image.size == 0:
        raise ValueError("Empty image passed to preprocessing")

    resized = cv2.resize(image, (input_size, input_size), interpolation=cv2.INTER_LINEAR)
    tensor = resized.astype(np.float32) / 255.0
    return tensor[None]
