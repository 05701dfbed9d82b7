import io
from pathlib import Path

import pytest
from PIL import Image

from ciclus_rd.backend.services import PhotoStorage
from ciclus_rd.shared.enums import PhotoKind
from ciclus_rd.shared.errors import ValidationError


def png_bytes(size=(3000, 1500), mode="RGBA"):
    buffer = io.BytesIO()
    Image.new(mode, size, (10, 120, 40, 255) if mode == "RGBA" else (10, 120, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def storage(config):
    return PhotoStorage(config)


def test_compress_caps_longest_edge_and_encodes_jpeg(storage):
    compressed = storage.compress(png_bytes())
    image = Image.open(io.BytesIO(compressed))
    assert image.format == "JPEG"
    assert max(image.size) == 1280
    assert image.size == (1280, 640)


def test_small_images_are_not_upscaled(storage):
    image = Image.open(io.BytesIO(storage.compress(png_bytes((200, 100), "RGB"))))
    assert image.size == (200, 100)


def test_invalid_image_is_a_validation_error(storage):
    with pytest.raises(ValidationError):
        storage.compress(b"not an image")


def test_upload_overwrites_and_returns_url(storage, config):
    url = storage.upload(png_bytes((50, 50)), "u-enc/initial_1")
    assert url == "/photos/u-enc/initial_1.jpg"
    target = Path(config.photo_dir) / "u-enc" / "initial_1.jpg"
    assert target.exists()

    storage.upload(png_bytes((60, 60)), "u-enc/initial_1")
    assert Image.open(target).size == (60, 60)
    assert storage.resolve(url) == target


def test_upload_sanitizes_path_segments(storage):
    url = storage.upload(png_bytes((10, 10)), "../user id/foto")
    assert ".." not in url
    assert " " not in url


def test_report_photo_path_uses_owner_and_kind(storage):
    url = storage.upload_report_photo(png_bytes((10, 10)), "u-enc", PhotoKind.PROGRESS)
    assert url.startswith("/photos/u-enc/progress_")
    assert storage.resolve("https://elsewhere/x.jpg") is None
