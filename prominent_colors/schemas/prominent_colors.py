"""
Schema definitions for prominent color extraction.
"""
import hashlib
import json
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    """Kinds of errors reported in a response"""
    NONE = "no_error"
    SERIALIZATION = "serialization_error"
    SIZE_TOO_LARGE = "size_too_large_error"
    UNKNOWN_DATA_FORMAT = "unknown_data_format_error"
    OTHER = "other_error"


class UploadType(str, Enum):
    """Ways a client can hand us an image"""
    URL = "url"
    BASE64 = "base64"
    FILE_UPLOAD = "file-upload"


class UploadRequest(BaseModel):
    """
    Request schema for prominent color extraction.

    When type is "url" the value is an image URL, when type is "base64" the
    value is base64 encoded image data. The type is kept as a plain string so
    that unsupported kinds can be reported back to the client instead of being
    rejected as malformed JSON.
    """
    model_config = ConfigDict(strict=True)

    type: str = Field("", description="How the image is supplied: url, base64 or file-upload")
    value: str = Field("", description="Image URL, base64 data or file path depending on type")
    num_prominent_colors: Optional[int] = Field(None, description="Number of colors to return, defaults to the server maximum")

    def fingerprint(self) -> str:
        """
        Stable cache key for this request.

        Only meaningful after the color count has been normalized.
        """
        payload = json.dumps([self.type, self.value, self.num_prominent_colors], separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class AppError(BaseModel):
    """Error details returned to the client"""
    msg: str
    type: ErrorType


class ProminentColorsResponse(BaseModel):
    """Response schema for prominent color extraction"""
    prominent_colors: Optional[List[str]] = Field(None, description="Hex colors ordered by prominence")
    error: Optional[AppError] = None
