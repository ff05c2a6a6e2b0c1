"""
Main application module for the Prominent Colors service.
"""
import argparse
import asyncio
import time
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Optional
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prominent_colors.api.v1.api import api_router
from prominent_colors.core.config import Settings, settings
from prominent_colors.core.logging import logger
from prominent_colors.utils.color_extraction import ColorExtractor, PyletteColorExtractor
from prominent_colors.utils.color_finder import ProminentColorsFinder
from prominent_colors.utils.http_client import CachedImageFetcher
from prominent_colors.utils.image_sources import UrlFetcher
from prominent_colors.utils.result_cache import ResultCache


async def sweep_result_cache(cache: ResultCache, interval: float) -> None:
    """
    Periodically drop expired entries from the result cache.
    """
    while True:
        await asyncio.sleep(interval)
        removed = cache.delete_expired()
        if removed:
            logger.debug(f"Removed {removed} expired result cache entries")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handle application startup and shutdown events.
    """
    app_settings: Settings = app.state.settings
    logger.info(f"Starting {app_settings.PROJECT_NAME} application")
    sweeper = asyncio.create_task(
        sweep_result_cache(app.state.finder.cache, app_settings.RESULT_CACHE_CLEANUP_INTERVAL_SECONDS)
    )
    yield
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    fetcher = app.state.finder.fetcher
    if hasattr(fetcher, "close"):
        fetcher.close()
    logger.info(f"Shutting down {app_settings.PROJECT_NAME} application")


def create_app(
    app_settings: Settings = settings,
    extractor: Optional[ColorExtractor] = None,
    fetcher: Optional[UrlFetcher] = None,
    cache: Optional[ResultCache] = None,
) -> FastAPI:
    """
    Build the FastAPI application with its collaborators.

    Collaborators that are not passed in are created from app_settings.
    """
    if fetcher is None:
        cache_dir = Path(app_settings.DISK_CACHE_DIR).resolve()
        logger.info(f"Using {cache_dir} as cache dir while fetching images from urls")
        fetcher = CachedImageFetcher(str(cache_dir), timeout=app_settings.URL_FETCH_TIMEOUT_SECONDS)
    if cache is None:
        cache = ResultCache(default_ttl=app_settings.RESULT_CACHE_TTL_SECONDS)
    if extractor is None:
        extractor = PyletteColorExtractor()

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        description="API for finding the prominent colors of an image",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.finder = ProminentColorsFinder(
        max_image_size=app_settings.max_request_body_size_bytes,
        max_prominent_colors=app_settings.MAX_PROMINENT_COLORS,
        cache=cache,
        extractor=extractor,
        fetcher=fetcher,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all requests and responses.
        """
        start_time = time.time()

        client_host = request.client.host if request.client else "unknown"
        request_path = request.url.path
        request_method = request.method

        logger.info(f"Request: {request_method} {request_path} from {client_host}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"Response: {request_method} {request_path} - Status: {response.status_code} - "
            f"Completed in {process_time:.4f}s"
        )
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler to log all unhandled exceptions.
        """
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error. Please try again later."}
        )

    app.include_router(api_router, prefix=app_settings.API_PREFIX)

    return app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the prominent colors API")
    parser.add_argument("--host", type=str, default=settings.HOST, help="interface to listen on")
    parser.add_argument("--port", type=int, default=settings.PORT, help="port number for the server to run on")
    parser.add_argument("--max-req-body-size", type=int, default=settings.MAX_REQUEST_BODY_SIZE_MB,
                        help="maximum request body size in mb")
    parser.add_argument("--max-prominent-colors", type=int, default=settings.MAX_PROMINENT_COLORS,
                        help="maximum prominent colors that can be used to limit the user's choice")
    parser.add_argument("--disk-cache-dir", type=str, default=settings.DISK_CACHE_DIR,
                        help="disk cache directory")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        HOST=args.host,
        PORT=args.port,
        MAX_REQUEST_BODY_SIZE_MB=args.max_req_body_size,
        MAX_PROMINENT_COLORS=args.max_prominent_colors,
        DISK_CACHE_DIR=args.disk_cache_dir,
    )


if __name__ == "__main__":
    cli_settings = settings_from_args(parse_args())
    logger.info(f"Starting server on {cli_settings.HOST}:{cli_settings.PORT}")
    uvicorn.run(create_app(cli_settings), host=cli_settings.HOST, port=cli_settings.PORT)
