# utils/image_helpers.py
# -*- coding: utf-8 -*-
"""
Image re-encoding for hosted share previews.
"""

import io
import logging
import secrets
import time
from PIL import Image, UnidentifiedImageError
from config import COMPRESSED_MAX_SIDE, COMPRESSED_JPEG_QUALITY

logger = logging.getLogger(__name__)


# ================================== compress_for_sharing(): Downscales and re-encodes as JPEG ==================================
def compress_for_sharing(image_bytes: bytes, max_side: int = COMPRESSED_MAX_SIDE, quality: int = COMPRESSED_JPEG_QUALITY) -> bytes:
    """
    Fits the image into max_side x max_side (aspect kept, never upscaled)
    and re-encodes it as an optimized RGB JPEG.
    Returns the input unchanged if it cannot be decoded or encoded,
    including images over the Pillow pixel limit.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.load()
            if img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail((max_side, max_side), Image.Resampling.LANCZOS)
            output = io.BytesIO()
            img.save(output, format="JPEG", quality=quality, optimize=True)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning(f"Сжатие не удалось, используется оригинал ({len(image_bytes)} байт): {e}")
        return image_bytes
    compressed = output.getvalue()
    logger.debug(f"Сжато: {len(image_bytes)} -> {len(compressed)} байт.")
    return compressed
# ================================== compress_for_sharing() end ==================================


def make_image_filename(user_id: int) -> str:
    return f"pepe_{user_id}_{int(time.time() * 1000)}_{secrets.token_hex(4)}.jpg"

# utils/image_helpers.py end
