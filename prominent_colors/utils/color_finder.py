"""
Finds the prominent colors for an upload request, memoizing results.
"""
from prominent_colors.core.exceptions import ProminentColorsError
from prominent_colors.core.logging import logger
from prominent_colors.schemas.prominent_colors import (
    AppError,
    ErrorType,
    ProminentColorsResponse,
    UploadRequest,
)
from prominent_colors.utils.color_extraction import ColorExtractor
from prominent_colors.utils.image_sources import UrlFetcher, resolve_source
from prominent_colors.utils.result_cache import ResultCache
from prominent_colors.utils.validation import read_bounded_image


class ProminentColorsFinder:
    """
    Runs the resolve, validate and extract pipeline behind a result cache.

    Concurrent misses for the same fingerprint are not coalesced: each one
    runs the pipeline and stores its result, the last store wins.
    """

    def __init__(
        self,
        max_image_size: int,
        max_prominent_colors: int,
        cache: ResultCache,
        extractor: ColorExtractor,
        fetcher: UrlFetcher,
        allow_files: bool = False,
    ):
        self.max_image_size = max_image_size
        self.max_prominent_colors = max_prominent_colors
        self.cache = cache
        self.extractor = extractor
        self.fetcher = fetcher
        self.allow_files = allow_files

    def normalize(self, request: UploadRequest) -> UploadRequest:
        """
        Clamp the requested color count into [1, max_prominent_colors].

        Missing, zero, negative and too large counts all become the maximum.
        """
        count = request.num_prominent_colors
        if count is None or count < 1 or count > self.max_prominent_colors:
            count = self.max_prominent_colors
        return request.model_copy(update={"num_prominent_colors": count})

    def find(self, request: UploadRequest) -> ProminentColorsResponse:
        """
        Return the prominent colors for request, from cache when possible.

        Only successful, non-empty results are cached. The request is
        normalized before fingerprinting, so requests that differ only in an
        out of range count share a cache entry.
        """
        request = self.normalize(request)
        key = request.fingerprint()

        cached = self.cache.get(key)
        if cached:
            logger.info(f"Cache hit for {request.type} request {key[:12]}")
            return ProminentColorsResponse(prominent_colors=cached)

        logger.info(f"Cache miss for {request.type} request {key[:12]}, extracting {request.num_prominent_colors} colors")
        response = self.find_uncached(request)

        if response.error is None and response.prominent_colors:
            self.cache.set(key, response.prominent_colors)
        return response

    def find_uncached(self, request: UploadRequest) -> ProminentColorsResponse:
        """
        Run the full pipeline for an already normalized request.

        Every failure is turned into the response error; nothing is raised.
        """
        try:
            source = resolve_source(request, self.fetcher, allow_files=self.allow_files)
            with source.open_stream() as stream:
                image_data = read_bounded_image(stream, self.max_image_size)
            colors = self.extractor.extract(image_data, request.num_prominent_colors)
        except ProminentColorsError as e:
            logger.warning(f"Could not find prominent colors ({e.error_type.value}): {e.message}")
            return ProminentColorsResponse(error=e.to_app_error())
        except Exception as e:
            logger.error(f"Unexpected error finding prominent colors: {str(e)}", exc_info=True)
            return ProminentColorsResponse(error=AppError(msg=str(e), type=ErrorType.OTHER))

        return ProminentColorsResponse(prominent_colors=colors)
