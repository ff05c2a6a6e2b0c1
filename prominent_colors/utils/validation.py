"""
Bounded reading and validation of untrusted image streams.
"""
import io
from typing import BinaryIO
from prominent_colors.core.exceptions import ProminentColorsError
from prominent_colors.core.logging import logger
from prominent_colors.schemas.prominent_colors import ErrorType
from prominent_colors.utils.sniff import SNIFF_LEN, is_image_type, sniff_content_type

CHUNK_SIZE = 64 * 1024


def copy_up_to(buffer: io.BytesIO, stream: BinaryIO, limit: int) -> int:
    """
    Copy at most limit bytes from stream into buffer.

    Stops early at end of stream. Returns the number of bytes copied.
    """
    copied = 0
    while copied < limit:
        chunk = stream.read(min(CHUNK_SIZE, limit - copied))
        if not chunk:
            break
        buffer.write(chunk)
        copied += len(chunk)
    return copied


def read_bounded_image(stream: BinaryIO, max_size: int) -> bytes:
    """
    Read an image from stream without holding more than max_size + 1 bytes.

    The first bytes are sniffed before the rest is read, so non-image payloads
    are rejected early. A one byte probe past max_size detects oversized
    payloads without trusting any declared length.

    Args:
        stream: Binary stream positioned at the start of the payload
        max_size: Largest acceptable payload size in bytes

    Returns:
        bytes: The complete payload

    Raises:
        ProminentColorsError: UNKNOWN_DATA_FORMAT, SIZE_TOO_LARGE or OTHER
    """
    limit_mb = max_size >> 20
    buffer = io.BytesIO()

    try:
        copy_up_to(buffer, stream, min(SNIFF_LEN, max_size))
    except Exception as e:
        raise ProminentColorsError(f"could not read image data: {e}", ErrorType.OTHER) from e

    content_type = sniff_content_type(buffer.getvalue())
    if not is_image_type(content_type):
        raise ProminentColorsError(f"{content_type} may not be image", ErrorType.UNKNOWN_DATA_FORMAT)

    try:
        copy_up_to(buffer, stream, max_size - buffer.tell())
    except Exception as e:
        raise ProminentColorsError(
            f"{e} {limit_mb}mb is the limit of the acceptable image size", ErrorType.SIZE_TOO_LARGE
        ) from e

    try:
        overflow = stream.read(1)
    except Exception as e:
        raise ProminentColorsError(f"could not read image data: {e}", ErrorType.OTHER) from e
    if overflow:
        raise ProminentColorsError(
            f"{limit_mb}mb is the limit of the acceptable image size", ErrorType.SIZE_TOO_LARGE
        )

    logger.debug(f"Read {buffer.tell()} bytes of {content_type}")
    return buffer.getvalue()
