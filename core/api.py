"""
FastAPI application and endpoints
"""
import asyncio
import logging
import re
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.cleanup import cleanup_expired_files

from .auth import make_token_verifier
from .config import Settings
from .enhancer import CancellationToken, EnhancementOrchestrator
from .errors import EnhancementError, NoFileProvided
from .models import EnhanceResponse, EnhancementRequest, ErrorResponse

logger = logging.getLogger(__name__)

DEFAULT_SCALE_RATIO = 4
DEFAULT_TYPE = 0
DISCONNECT_CHECK_INTERVAL = 0.5

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def parse_form_int(value: Optional[str], default: int) -> int:
    """Leading integer of ``value``; ``default`` when missing, invalid or zero"""
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    if not match:
        return default
    return int(match.group(1)) or default


async def _cancel_on_disconnect(request: Request, token: CancellationToken) -> None:
    while not token.cancelled:
        if await request.is_disconnected():
            logger.warning("⚠️ Client disconnected, cancelling enhancement")
            token.cancel()
            return
        await asyncio.sleep(DISCONNECT_CHECK_INTERVAL)


def create_app(settings: Optional[Settings] = None,
               orchestrator: Optional[EnhancementOrchestrator] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    orchestrator = orchestrator or EnhancementOrchestrator.from_settings(settings)
    storage = orchestrator.storage
    verify_token = make_token_verifier(settings.api_tokens)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        storage.ensure_dir()
        cleanup_expired_files(storage.directory, max_age_seconds=settings.retention_seconds)
        yield

    web_app = FastAPI(
        title="Image Enhancer Proxy",
        version="1.0.0",
        description="Upload an image, enhance it through the remote provider, download the result",
        lifespan=lifespan,
    )
    web_app.state.settings = settings
    web_app.state.orchestrator = orchestrator

    # Global exception handler to prevent crash loops
    @web_app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(exc)}
        )

    @web_app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Method not allowed handler (prevents GET to POST endpoints)
    @web_app.exception_handler(405)
    async def method_not_allowed_handler(request: Request, exc):
        return JSONResponse(
            status_code=405,
            content={
                "error": "Method not allowed",
                "details": f"Method {request.method} not allowed for {request.url.path}",
                "allowed_methods": ["GET", "POST"] if request.url.path == "/api/enhance" else ["GET"]
            }
        )

    @web_app.exception_handler(NoFileProvided)
    async def no_file_handler(request: Request, exc: NoFileProvided):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    # A text "image" field is not an upload
    @web_app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if any(tuple(error.get("loc", ()))[:2] == ("body", "image") for error in errors):
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request", "details": str(errors)},
        )

    @web_app.post(
        "/api/enhance",
        response_model=EnhanceResponse,
        responses={
            400: {"model": ErrorResponse},
            413: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    async def enhance_endpoint(
        request: Request,
        image: Optional[UploadFile] = File(None),
        scale_ratio: Optional[str] = Form(None, alias="scaleRatio"),
        enhancement_type: Optional[str] = Form(None, alias="type"),
        token: Optional[str] = Depends(verify_token),
    ):
        if image is None or (not image.filename and not image.size):
            raise NoFileProvided("No file uploaded")

        content = await image.read()
        if len(content) > settings.max_upload_bytes:
            return JSONResponse(
                status_code=413,
                content={
                    "error": "File too large",
                    "details": f"Maximum upload size is {settings.max_upload_bytes} bytes",
                },
            )

        enhancement_request = EnhancementRequest(
            image_bytes=content,
            original_filename=image.filename or "temp.jpg",
            scale_ratio=parse_form_int(scale_ratio, DEFAULT_SCALE_RATIO),
            type=parse_form_int(enhancement_type, DEFAULT_TYPE),
            content_type=image.content_type,
        )

        cancel_token = CancellationToken()
        watcher = asyncio.create_task(_cancel_on_disconnect(request, cancel_token))
        try:
            upload_path = storage.save_upload(content, image.filename)
            artifact = await run_in_threadpool(
                orchestrator.enhance, enhancement_request, upload_path, cancel_token
            )
        except asyncio.CancelledError:
            cancel_token.cancel()
            raise
        except EnhancementError as e:
            logger.error(f"❌ Enhancement error: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "Image enhancement failed", "details": str(e)},
            )
        finally:
            watcher.cancel()
            with suppress(asyncio.CancelledError):
                await watcher

        base_url = f"{request.url.scheme}://{request.url.netloc}"
        return EnhanceResponse(
            original_url=artifact.download_url,
            local_url=f"{base_url}/{artifact.local_filename}",
            filename=artifact.local_filename,
        )

    @web_app.get("/api/enhance")
    async def enhance_get_info():
        return {
            "error": "Method not allowed",
            "message": "Use POST method with multipart/form-data to enhance images",
            "required_fields": {
                "image": f"image file (max {settings.max_upload_bytes // (1024 * 1024)}MB)",
            },
            "optional_fields": {
                "scaleRatio": f"integer upscale ratio (default {DEFAULT_SCALE_RATIO})",
                "type": f"integer enhancement mode (default {DEFAULT_TYPE})",
            },
            "response_format": {
                "localUrl": "URL to download the enhanced image",
                "expires_in_seconds": settings.retention_seconds,
            },
            "authentication": "Bearer token required" if settings.api_tokens else "none",
        }

    @web_app.get("/enhanced_{filename}")
    async def serve_enhanced(filename: str):
        """Serve a previously enhanced image from temp storage"""
        path = storage.resolve_artifact(f"enhanced_{filename}")
        if path is None:
            return JSONResponse(status_code=404, content={"error": "File not found"})
        return FileResponse(path)

    @web_app.get("/health")
    def health():
        """Health check endpoint - no auth required"""
        return {"status": "healthy", "service": "image-enhancer-proxy", "version": "1.0.0"}

    @web_app.get("/")
    def root():
        """Root endpoint with API info - no auth required"""
        return {
            "message": "Image Enhancer Proxy",
            "version": "1.0.0",
            "endpoints": {
                "POST /api/enhance": "Enhance an uploaded image",
                "GET /enhanced_{filename}": "Download an enhanced image",
                "GET /health": "Health check",
                "GET /docs": "API documentation",
                "GET /": "This info page"
            },
        }

    return web_app
