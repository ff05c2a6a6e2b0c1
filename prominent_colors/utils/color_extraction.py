"""
Utility functions for prominent color extraction.
"""
from io import BytesIO
from typing import Iterable, List, Protocol, Sequence
from PIL import Image, UnidentifiedImageError
from Pylette import extract_colors
from prominent_colors.core.exceptions import ProminentColorsError
from prominent_colors.core.logging import logger
from prominent_colors.schemas.prominent_colors import ErrorType


class ColorExtractor(Protocol):
    """Turns encoded image bytes into at most n hex colors, most prominent first."""

    def extract(self, image_data: bytes, n: int) -> List[str]:
        ...


def rgb_to_hex(rgb: Sequence[int]) -> str:
    """Convert an (R, G, B) triple to a "#rrggbb" string."""
    return "#" + "".join(format(int(round(c)), "02x") for c in rgb[:3])


def top_colors(rgb_colors: Iterable[Sequence[int]], n: int) -> List[str]:
    """
    Convert colors to hex without losing their order.

    Colors that collapse to the same hex value are kept once, so an image
    with fewer distinct colors than requested yields a shorter list.
    """
    colors_in_hex: List[str] = []
    for rgb in rgb_colors:
        hex_color = rgb_to_hex(rgb)
        if hex_color not in colors_in_hex:
            colors_in_hex.append(hex_color)
        if len(colors_in_hex) == n:
            break
    return colors_in_hex


def decode_image(image_data: bytes) -> Image.Image:
    """
    Decode image bytes with Pillow.

    Raises:
        ProminentColorsError: OTHER if the data cannot be decoded
    """
    try:
        image = Image.open(BytesIO(image_data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ProminentColorsError(f"image: {str(e)}", ErrorType.OTHER) from e
    return image


class PyletteColorExtractor:
    """
    K-means color extraction backed by Pylette, sorted by pixel frequency.
    """

    def extract(self, image_data: bytes, n: int) -> List[str]:
        image = decode_image(image_data)
        logger.info(f"Extracting {n} colors from {image.format} image of size {image.size}")

        try:
            palette = extract_colors(image=image_data, palette_size=n, sort_mode="frequency")
        except Exception as e:
            logger.error(f"Error extracting color palette: {str(e)}")
            raise ProminentColorsError(f"could not extract colors: {str(e)}", ErrorType.OTHER) from e

        return top_colors((color.rgb for color in palette), n)
