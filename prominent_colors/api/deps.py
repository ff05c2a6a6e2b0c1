"""
Dependency functions for API endpoints.
"""
from fastapi import HTTPException, Request, status
from prominent_colors.core.config import Settings
from prominent_colors.utils.color_finder import ProminentColorsFinder


async def require_json_content_type(request: Request) -> None:
    """
    Reject requests that are not declared as JSON.

    Raises:
        HTTPException: 415 if Content-Type is not application/json
    """
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() != "application/json":
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Content-Type must be application/json"
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_finder(request: Request) -> ProminentColorsFinder:
    return request.app.state.finder
