"""Decode an image file into an interleaved RGBA8 buffer with Pillow."""

from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError


# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side


class DecodeFailure(ValueError):
    """The image is missing, unreadable, corrupt or too large."""


@dataclass(frozen=True)
class DecodedImage:
    width: int
    height: int
    pixels: bytes  # width * height * 4 bytes, R, G, B, A order


def decode_image(image_path: str) -> DecodedImage:
    """
    Load an image and convert it to RGBA.

    Raises:
        DecodeFailure: If the file is missing, not a valid image, or exceeds size limits
    """
    try:
        with Image.open(image_path) as img:
            width, height = img.size
            if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
                raise DecodeFailure(
                    f"Image dimensions {width}x{height} exceed maximum "
                    f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
                )
            if width * height > MAX_IMAGE_PIXELS:
                raise DecodeFailure(
                    f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
                )
            pixels = img.convert('RGBA').tobytes()
    except FileNotFoundError:
        raise DecodeFailure(f"Image not found: {image_path}") from None
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise DecodeFailure(f"Could not open image {image_path}: {e}") from e

    return DecodedImage(width=width, height=height, pixels=pixels)
