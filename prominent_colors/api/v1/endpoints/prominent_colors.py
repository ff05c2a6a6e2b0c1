"""
API endpoint for prominent color extraction.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError
from prominent_colors.api.deps import get_finder, get_settings, require_json_content_type
from prominent_colors.core.config import Settings
from prominent_colors.core.exceptions import ProminentColorsError
from prominent_colors.core.logging import logger
from prominent_colors.schemas.prominent_colors import ErrorType, ProminentColorsResponse, UploadRequest
from prominent_colors.utils.color_finder import ProminentColorsFinder

router = APIRouter()


async def read_limited_body(request: Request, limit: int) -> bytes:
    """
    Read the request body, keeping at most limit bytes.

    The body is always consumed to the end so the connection is left clean,
    even when it is too large.

    Raises:
        ProminentColorsError: SIZE_TOO_LARGE if the body exceeds limit
    """
    body = bytearray()
    too_large = False
    async for chunk in request.stream():
        if too_large:
            continue
        body.extend(chunk)
        if len(body) > limit:
            too_large = True
            del body[limit:]
    if too_large:
        raise ProminentColorsError(
            f"request body exceeds {limit >> 20}mb limit", ErrorType.SIZE_TOO_LARGE
        )
    return bytes(body)


def describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def log_undecodable_body(cause: str, body: bytes) -> None:
    """
    Log a request body that could not be decoded.

    Runs after the response has been sent; failures here are only logged.
    """
    try:
        logger.warning(f"could not decode request body, failed with '{cause}'")
        logger.warning(body.decode("utf-8", errors="replace"))  # can be big
    except Exception as e:
        logger.debug(f"Could not log undecodable request body: {str(e)}")


def render_response(body: ProminentColorsResponse, background: BackgroundTasks) -> Response:
    """
    Serialize the response body exactly once for every outcome.

    Responses carrying an error are sent with status 500. If the body itself
    cannot be serialized a plaintext error is sent instead.
    """
    try:
        content = body.model_dump_json()
    except (PydanticSerializationError, ValueError) as e:
        logger.error(f"Could not serialize response: {str(e)}")
        return PlainTextResponse(f"error: {e}", status_code=500, background=background)

    if body.error is not None:
        return Response(content, status_code=500, media_type="application/json", background=background)

    return Response(
        content,
        status_code=200,
        media_type="application/json",
        headers={"Access-Control-Allow-Origin": "*"},
        background=background,
    )


@router.post("/", response_model=ProminentColorsResponse, dependencies=[Depends(require_json_content_type)])
async def find_prominent_colors(
    request: Request,
    background_tasks: BackgroundTasks,
    finder: ProminentColorsFinder = Depends(get_finder),
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Find the most prominent colors of an image.

    The body is a JSON UploadRequest. The image is given either as a URL or
    as base64 data. Results are cached for a few minutes per request.

    Returns:
        Response: ProminentColorsResponse JSON, status 200 on success and 500
        when the error field is set
    """
    try:
        raw_body = await read_limited_body(request, settings.max_request_body_size_bytes)
    except ProminentColorsError as e:
        logger.warning(f"Rejected request body: {e.message}")
        return render_response(ProminentColorsResponse(error=e.to_app_error()), background_tasks)

    try:
        upload_request = UploadRequest.model_validate_json(raw_body)
    except ValidationError as e:
        cause = describe_validation_error(e)
        background_tasks.add_task(log_undecodable_body, cause, raw_body)
        error = ProminentColorsError(
            f"could not decode request body, failed with '{cause}'", ErrorType.SERIALIZATION
        )
        return render_response(ProminentColorsResponse(error=error.to_app_error()), background_tasks)

    response = await run_in_threadpool(finder.find, upload_request)
    return render_response(response, background_tasks)
