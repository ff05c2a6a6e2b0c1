"""
HTTP client for fetching remote images through a disk cache.
"""
from pathlib import Path
from typing import BinaryIO
import requests
from cachecontrol import CacheControl
from cachecontrol.caches.file_cache import FileCache
from prominent_colors.core.exceptions import ProminentColorsError
from prominent_colors.core.logging import logger
from prominent_colors.schemas.prominent_colors import ErrorType


class CachedImageFetcher:
    """
    Fetches URLs with responses cached on disk according to their HTTP
    caching headers (Cache-Control, ETag, Last-Modified).
    """

    def __init__(self, cache_dir: str, timeout: float = 10.0):
        self.cache_dir = str(Path(cache_dir).resolve())
        self.timeout = timeout
        self.session = CacheControl(requests.Session(), cache=FileCache(self.cache_dir))

    def open(self, url: str) -> BinaryIO:
        """
        Start downloading url and return the response body as a stream.

        A Content-Type header that is present and not an image type fails the
        request early. A missing header is accepted; the body is sniffed later.

        Raises:
            ProminentColorsError: OTHER on transport errors, bad statuses or a
                non-image Content-Type
        """
        logger.info(f"Fetching image from {url}")
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Error fetching image from {url}: {str(e)}")
            raise ProminentColorsError(str(e), ErrorType.OTHER) from e

        content_type = response.headers.get("Content-Type", "")
        if content_type and not content_type.startswith("image/"):
            response.close()
            raise ProminentColorsError(f"{content_type} may not be an image", ErrorType.OTHER)

        response.raw.decode_content = True
        return response.raw

    def close(self) -> None:
        self.session.close()
