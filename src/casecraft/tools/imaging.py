"""
CaseCraft Screenshot Preprocessor

Bounds the dimensions of captured screenshots before they are sent to a
vision model, and encodes them as base64 data URIs.

Images whose sides already fit are passed through untouched. Larger
images are scaled so their longer side equals the limit and re-encoded as
JPEG. Resize failures never propagate: the original image is used instead.
"""

import base64
import io
import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterator, Optional, Union

from PIL import Image

from casecraft.core.config import settings
from casecraft.core.exceptions import ImageReadFailedError, ImageResizeFailedError

logger = logging.getLogger(__name__)

LOSSY_FORMAT = "JPEG"
LOSSY_MIME = "image/jpeg"
RESIZED_MARKER = "_resized"

EXTENSION_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

FORMAT_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}

ImageSource = Union["ImageAsset", str, Path, bytes]


@dataclass(frozen=True)
class ImageAsset:
    """
    An image on disk or in memory.

    `source` is set on resized copies and points at the asset they were
    made from.
    """

    path: Optional[Path] = None
    data: Optional[bytes] = None
    width: int = 0
    height: int = 0
    mime_type: str = LOSSY_MIME
    source: Optional["ImageAsset"] = None

    @property
    def resized(self) -> bool:
        return self.source is not None

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise OSError("Image asset has neither bytes nor a path")
        return self.path.read_bytes()


@dataclass(frozen=True)
class EncodedImage:
    """Base64 payload ready to embed in a vision request."""

    base64: str
    mime_type: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


def mime_for_extension(path: Union[str, Path]) -> str:
    """MIME type from a file extension; unknown extensions map to JPEG."""
    return EXTENSION_MIME.get(Path(path).suffix.lower(), LOSSY_MIME)


def resized_path_for(path: Union[str, Path]) -> Path:
    """Where the resized copy of an image file is written."""
    path = Path(path)
    return path.with_name(f"{path.stem}{RESIZED_MARKER}.jpg")


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def scaled_dimensions(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """
    Dimensions that fit max_dimension while keeping the aspect ratio.

    The longer side becomes max_dimension; the other side is scaled by
    the same ratio and rounded to the nearest integer.
    """
    if width > height:
        return max_dimension, max(1, _round_half_up(height * max_dimension / width))
    return max(1, _round_half_up(width * max_dimension / height)), max_dimension


class ScreenshotPreprocessor:
    """Normalizes screenshots for the vision model boundary."""

    def __init__(
        self,
        max_dimension: Optional[int] = None,
        quality: Optional[int] = None,
    ):
        """
        Initialize the preprocessor.

        Args:
            max_dimension: Longest allowed side in pixels
            quality: JPEG quality used when re-encoding
        """
        self.max_dimension = max_dimension or settings.image_max_dimension
        self.quality = quality or settings.image_quality

    def load(self, source: ImageSource) -> ImageAsset:
        """
        Build an ImageAsset and read its dimensions.

        Raises:
            ImageReadFailedError: If the source is not a readable image
        """
        asset = self._wrap(source)
        try:
            with self._open(asset) as img:
                return self._with_metadata(asset, img)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageReadFailedError(
                f"Cannot read image: {e}",
                details={"path": str(asset.path) if asset.path else None},
            ) from e

    def normalize(self, image: ImageSource, max_dimension: Optional[int] = None) -> ImageAsset:
        """
        Bound the image dimensions.

        Args:
            image: ImageAsset, file path or raw bytes
            max_dimension: Override for the configured limit

        Returns:
            The original asset when it already fits or when resizing
            fails, otherwise a resized JPEG asset
        """
        asset = self._wrap(image)
        try:
            return self.resize(asset, max_dimension or self.max_dimension)
        except ImageResizeFailedError as e:
            logger.warning(f"{e.kind.value}: {e.message}; using the original image")
            return asset

    def resize(self, asset: ImageAsset, limit: int) -> ImageAsset:
        """
        Re-encode the asset so neither side exceeds limit.

        Raises:
            ImageResizeFailedError: If the image cannot be decoded,
                re-encoded or written
        """
        try:
            with self._open(asset) as img:
                width, height = img.size
                logger.info(f"Original image dimensions: {width}x{height}")

                if width <= limit and height <= limit:
                    logger.info(f"Image already within {limit}px limit, no resizing needed")
                    return self._with_metadata(asset, img)

                new_width, new_height = scaled_dimensions(width, height, limit)
                logger.info(f"Resizing image to: {new_width}x{new_height}")

                resized = img.convert("RGB").resize((new_width, new_height), Image.Resampling.LANCZOS)
                buffer = io.BytesIO()
                resized.save(buffer, format=LOSSY_FORMAT, quality=self.quality)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageResizeFailedError(f"Cannot resize image: {e}") from e

        data = buffer.getvalue()

        if asset.path is None:
            return ImageAsset(
                data=data,
                width=new_width,
                height=new_height,
                mime_type=LOSSY_MIME,
                source=asset,
            )

        output_path = resized_path_for(asset.path)
        try:
            output_path.write_bytes(data)
        except OSError as e:
            raise ImageResizeFailedError(
                f"Cannot write {output_path}: {e}",
                details={"path": str(output_path)},
            ) from e

        logger.info(f"Resized image written: {output_path} ({len(data) / 1024:.2f}KB)")
        return ImageAsset(
            path=output_path,
            width=new_width,
            height=new_height,
            mime_type=LOSSY_MIME,
            source=asset,
        )

    def to_base64(self, asset: ImageAsset) -> EncodedImage:
        """
        Encode an asset for a data URI.

        Falls back to the original source bytes when the asset cannot be
        read.

        Raises:
            ImageReadFailedError: If the original cannot be read either
        """
        try:
            data = asset.read_bytes()
            mime_type = LOSSY_MIME if asset.resized else self._original_mime(asset)
        except OSError as e:
            logger.error(f"Error preparing image for AI: {e}")
            original = asset.source or asset
            try:
                data = original.read_bytes()
            except OSError as fallback_error:
                raise ImageReadFailedError(
                    f"Cannot read image bytes: {fallback_error}",
                    details={"path": str(original.path) if original.path else None},
                ) from fallback_error
            mime_type = self._original_mime(original)
            logger.warning("Using original image as fallback")

        encoded = base64.b64encode(data).decode("utf-8")
        logger.info(f"Image prepared for AI: {len(encoded) / 1024:.2f}KB base64, {mime_type}")
        return EncodedImage(base64=encoded, mime_type=mime_type)

    def cleanup(self, target: Union[ImageAsset, str, Path, None]) -> bool:
        """
        Delete a resized image file. Never raises.

        Only files carrying the resized marker in their name are removed.

        Returns:
            True if a file was deleted
        """
        path = target.path if isinstance(target, ImageAsset) else target
        if path is None:
            return False
        path = Path(path)
        if RESIZED_MARKER not in path.name:
            return False
        try:
            if path.exists():
                path.unlink()
                logger.info(f"Cleaned up resized image: {path}")
                return True
        except OSError as e:
            logger.warning(f"Failed to cleanup resized image: {e}")
        return False

    @contextmanager
    def prepare(self, source: ImageSource, max_dimension: Optional[int] = None) -> Iterator[EncodedImage]:
        """Normalize and encode an image; the resized copy is removed on exit."""
        asset = self.normalize(source, max_dimension)
        try:
            yield self.to_base64(asset)
        finally:
            if asset.resized:
                self.cleanup(asset)

    def _wrap(self, source: ImageSource) -> ImageAsset:
        if isinstance(source, ImageAsset):
            return source
        if isinstance(source, (bytes, bytearray)):
            return ImageAsset(data=bytes(source))
        path = Path(source)
        return ImageAsset(path=path, mime_type=mime_for_extension(path))

    def _open(self, asset: ImageAsset) -> Image.Image:
        if asset.data is not None:
            return Image.open(io.BytesIO(asset.data))
        if asset.path is None:
            raise ValueError("Image asset has neither bytes nor a path")
        return Image.open(asset.path)

    def _with_metadata(self, asset: ImageAsset, img: Image.Image) -> ImageAsset:
        width, height = img.size
        mime_type = asset.mime_type
        if asset.path is None:
            mime_type = FORMAT_MIME.get(img.format or "", asset.mime_type)
        return replace(asset, width=width, height=height, mime_type=mime_type)

    def _original_mime(self, asset: ImageAsset) -> str:
        if asset.path is not None:
            return mime_for_extension(asset.path)
        return asset.mime_type
