"""Tests for screenshot preprocessing."""

import base64
import io

import pytest
from PIL import Image

from casecraft.core.exceptions import ImageReadFailedError, ImageResizeFailedError
from casecraft.tools.imaging import (
    ImageAsset,
    ScreenshotPreprocessor,
    mime_for_extension,
    resized_path_for,
    scaled_dimensions,
)


@pytest.fixture
def preprocessor():
    return ScreenshotPreprocessor(max_dimension=500, quality=85)


@pytest.mark.parametrize(
    "size,expected",
    [
        ((1920, 1080), (500, 281)),
        ((1080, 1920), (281, 500)),
        ((1000, 1000), (500, 500)),
        ((1001, 3), (500, 1)),
    ],
)
def test_scaled_dimensions(size, expected):
    assert scaled_dimensions(*size, 500) == expected


def test_large_image_is_resized_to_jpeg(preprocessor, make_image):
    source = make_image(1920, 1080)

    asset = preprocessor.normalize(source)

    assert asset.resized
    assert (asset.width, asset.height) == (500, 281)
    assert asset.path == resized_path_for(source)
    with Image.open(asset.path) as img:
        assert img.size == (500, 281)
        assert img.format == "JPEG"
    assert preprocessor.to_base64(asset).mime_type == "image/jpeg"


def test_small_image_is_returned_unchanged(preprocessor, make_image):
    source = make_image(400, 300)
    original = source.read_bytes()

    asset = preprocessor.normalize(source)
    encoded = preprocessor.to_base64(asset)

    assert not asset.resized
    assert asset.path == source
    assert encoded.mime_type == "image/png"
    assert base64.b64decode(encoded.base64) == original
    assert not resized_path_for(source).exists()


def test_in_memory_image_is_resized_in_memory(preprocessor):
    buffer = io.BytesIO()
    Image.new("RGB", (800, 400)).save(buffer, format="PNG")

    asset = preprocessor.normalize(buffer.getvalue())

    assert asset.path is None
    assert (asset.width, asset.height) == (500, 250)
    assert preprocessor.to_base64(asset).data_uri.startswith("data:image/jpeg;base64,")


def test_unreadable_image_degrades_to_original(preprocessor, tmp_path):
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")

    asset = preprocessor.normalize(broken)

    assert asset.path == broken
    assert not asset.resized


def test_resize_raises_typed_error(preprocessor, tmp_path):
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")

    with pytest.raises(ImageResizeFailedError) as exc_info:
        preprocessor.resize(ImageAsset(path=broken), 500)

    assert exc_info.value.kind.value == "ImageResizeFailed"


def test_to_base64_falls_back_to_source_bytes(preprocessor, make_image):
    source = make_image(1200, 600)
    asset = preprocessor.normalize(source)
    asset.path.unlink()

    encoded = preprocessor.to_base64(asset)

    assert encoded.mime_type == "image/png"
    assert base64.b64decode(encoded.base64) == source.read_bytes()


def test_to_base64_raises_when_nothing_is_readable(preprocessor, tmp_path):
    missing = ImageAsset(path=tmp_path / "gone.png")
    with pytest.raises(ImageReadFailedError):
        preprocessor.to_base64(missing)


def test_load_rejects_non_images(preprocessor, tmp_path):
    bogus = tmp_path / "bogus.jpg"
    bogus.write_text("hello")
    with pytest.raises(ImageReadFailedError):
        preprocessor.load(bogus)


def test_cleanup_only_removes_resized_files(preprocessor, make_image, tmp_path):
    source = make_image(1200, 600)
    asset = preprocessor.normalize(source)

    assert not preprocessor.cleanup(source)
    assert source.exists()
    assert preprocessor.cleanup(asset)
    assert not asset.path.exists()
    assert not preprocessor.cleanup(tmp_path / "never_resized.jpg")


def test_prepare_removes_resized_copy_on_error(preprocessor, make_image):
    source = make_image(1200, 600)
    resized = resized_path_for(source)

    with pytest.raises(RuntimeError):
        with preprocessor.prepare(source) as image:
            assert resized.exists()
            assert image.mime_type == "image/jpeg"
            raise RuntimeError("boom")

    assert not resized.exists()
    assert source.exists()


@pytest.mark.parametrize(
    "name,mime",
    [("a.png", "image/png"), ("a.JPEG", "image/jpeg"), ("a.webp", "image/webp"), ("a.bmp", "image/jpeg")],
)
def test_mime_for_extension(name, mime):
    assert mime_for_extension(name) == mime
