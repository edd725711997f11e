# tests/test_image_helpers.py
# -*- coding: utf-8 -*-
import io

from PIL import Image

from tests.fakes import make_png
from utils.image_helpers import compress_for_sharing, make_image_filename


def _size(data: bytes):
    with Image.open(io.BytesIO(data)) as img:
        return img.size, img.format


def test_large_image_fits_bounds_and_keeps_aspect():
    compressed = compress_for_sharing(make_png(2048, 1536))
    (width, height), fmt = _size(compressed)
    assert fmt == "JPEG"
    assert (width, height) == (1024, 768)


def test_small_image_is_not_upscaled():
    (width, height), _ = _size(compress_for_sharing(make_png(300, 200)))
    assert (width, height) == (300, 200)


def test_rgba_input_is_converted():
    buffer = io.BytesIO()
    Image.new("RGBA", (1200, 1200), (0, 0, 0, 0)).save(buffer, format="PNG")
    (width, height), fmt = _size(compress_for_sharing(buffer.getvalue()))
    assert fmt == "JPEG"
    assert max(width, height) <= 1024


def test_undecodable_bytes_fall_back_to_original(caplog):
    data = b"definitely not an image"
    assert compress_for_sharing(data) is data
    assert any("оригинал" in record.getMessage() for record in caplog.records)


def test_filenames_are_unique():
    assert make_image_filename(1) != make_image_filename(1)
    assert make_image_filename(1).endswith(".jpg")


def test_decompression_bomb_falls_back_to_original(monkeypatch, caplog):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    data = make_png(64, 48)
    assert compress_for_sharing(data) is data
    assert any("оригинал" in record.getMessage() for record in caplog.records)
