"""
Image sources: the different ways a request can point at image bytes.
"""
import base64
import binascii
import io
import re
from abc import ABC, abstractmethod
from typing import BinaryIO, Protocol
from prominent_colors.core.exceptions import ProminentColorsError
from prominent_colors.schemas.prominent_colors import ErrorType, UploadRequest, UploadType

_DATA_URL_PREFIX = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


class UrlFetcher(Protocol):
    def open(self, url: str) -> BinaryIO:
        ...


class ImageSource(ABC):
    """Something that can be opened as a binary stream of image data."""

    @abstractmethod
    def open_stream(self) -> BinaryIO:
        ...


class UrlImageSource(ImageSource):
    def __init__(self, url: str, fetcher: UrlFetcher):
        self.url = url
        self.fetcher = fetcher

    def open_stream(self) -> BinaryIO:
        return self.fetcher.open(self.url)


class Base64ImageSource(ImageSource):
    """
    Inline base64 data, optionally wrapped in a data URL.
    """

    def __init__(self, data: str):
        self.data = data

    def open_stream(self) -> BinaryIO:
        data = _DATA_URL_PREFIX.sub("", self.data, count=1)
        data = _WHITESPACE.sub("", data)
        try:
            decoded = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ProminentColorsError(f"illegal base64 data: {e}", ErrorType.OTHER) from e
        return io.BytesIO(decoded)


class FileImageSource(ImageSource):
    def __init__(self, path: str):
        self.path = path

    def open_stream(self) -> BinaryIO:
        try:
            return open(self.path, "rb")
        except OSError as e:
            raise ProminentColorsError(str(e), ErrorType.OTHER) from e


def resolve_source(request: UploadRequest, fetcher: UrlFetcher, allow_files: bool = False) -> ImageSource:
    """
    Pick the image source for a request.

    File paths are only honoured when allow_files is set, which the HTTP
    endpoint never does.

    Raises:
        ProminentColorsError: OTHER for unsupported upload types
    """
    if request.type == UploadType.URL.value:
        return UrlImageSource(request.value, fetcher)
    if request.type == UploadType.BASE64.value:
        return Base64ImageSource(request.value)
    if request.type == UploadType.FILE_UPLOAD.value and allow_files:
        return FileImageSource(request.value)
    raise ProminentColorsError(
        f"requested type {request.type} is not implemented for http requests", ErrorType.OTHER
    )
