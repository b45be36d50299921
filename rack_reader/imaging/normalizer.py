"""
Image normalization.

Bakes EXIF orientation and caps the longest side so every downstream stage
works in one canonical pixel space. Coordinates reported by the decoder,
the grid clusterer and the annotation overlay all refer to this frame.
"""

import io
import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import InvalidImage

logger = logging.getLogger(__name__)

# Sources up to this size are accepted; they are downscaled to max_dimension
# right after opening.
MAX_SOURCE_PIXELS = 400_000_000

if Image.MAX_IMAGE_PIXELS is not None and Image.MAX_IMAGE_PIXELS < MAX_SOURCE_PIXELS:
    Image.MAX_IMAGE_PIXELS = MAX_SOURCE_PIXELS
warnings.simplefilter("ignore", Image.DecompressionBombWarning)

ImageSource = Union[str, Path, bytes, Image.Image]


@dataclass(frozen=True)
class NormalizedFrame:
    """Container for the normalized, read-only scan frame."""
    image: Image.Image  # RGB, orientation applied
    width: int
    height: int
    scale: float  # Applied downscale factor (<= 1.0)

    @property
    def size(self):
        return self.width, self.height


def load_image(source: ImageSource) -> Image.Image:
    """
    Open an image from a path, raw bytes, or an existing PIL Image.

    Raises:
        InvalidImage: If the source cannot be read as an image.
    """
    if isinstance(source, Image.Image):
        return source
    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(str(source))
        img.load()
    except (FileNotFoundError, UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise InvalidImage(f"Could not read image from {_describe(source)}: {exc}") from exc
    return img


def compute_scale(pixel_width: float, pixel_height: float, max_dimension: float) -> float:
    """Downscale factor that fits the longest side within max_dimension."""
    longest = max(pixel_width, pixel_height)
    if longest <= 0:
        raise InvalidImage(f"Image has no pixels ({pixel_width}x{pixel_height})")
    return min(1.0, max_dimension / longest)


def normalize_image(
    source: ImageSource,
    max_dimension: int = 4000,
) -> NormalizedFrame:
    """
    Produce the canonical frame for a scan.

    Steps:
    1. Open the source
    2. Apply EXIF orientation so no further rotation/mirroring is needed
    3. Resize so the longest side is <= max_dimension (aspect preserved)

    Args:
        source: Path, bytes, or PIL Image
        max_dimension: Cap for the longest side in pixels

    Returns:
        NormalizedFrame with the RGB buffer and its size

    Raises:
        InvalidImage: If the source cannot be decoded into a pixel buffer
    """
    img = load_image(source)
    try:
        oriented = ImageOps.exif_transpose(img)
        if oriented is None:
            oriented = img
        scale = compute_scale(oriented.width, oriented.height, max_dimension)

        # PIL sizes are already in pixels, so scale <= 1 never upsamples
        target = (max(1, round(oriented.width * scale)), max(1, round(oriented.height * scale)))
        rgb = oriented.convert("RGB")
        if target != rgb.size:
            rgb = rgb.resize(target, Image.Resampling.LANCZOS)
    except InvalidImage:
        raise
    except (OSError, ValueError) as exc:
        raise InvalidImage(f"Could not convert image to a pixel buffer: {exc}") from exc

    logger.debug(
        "Normalized frame: %dx%d px (source %dx%d, scale %.3f)",
        rgb.width, rgb.height, img.width, img.height, scale,
    )
    return NormalizedFrame(image=rgb, width=rgb.width, height=rgb.height, scale=scale)


def _describe(source: ImageSource) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return str(source)
