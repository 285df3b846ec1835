# main.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from link_resolver import LinkResolver, __version__
from link_resolver.api_clients import build_api_clients
from link_resolver.config import get_config
from link_resolver.exceptions import (
    AmbiguousRedirectError,
    ConfigurationError,
    ExtractionMissError,
    InvalidURLError,
    LinkResolverError,
    RateLimitExceededError,
    UnsupportedURLError,
    UpstreamError,
    ValidationError,
    create_user_friendly_error
)
from link_resolver.models import LinkRequest
from link_resolver.utils.http_client import RateLimitedHTTPClient
from link_resolver.utils.validation import sanitize_url

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize the resolver and its long-lived clients once per process
try:
    config = get_config()
    logger.info("Configuration loaded successfully")
    http_client = RateLimitedHTTPClient.from_config(config)
    twitter_client, drive_client = build_api_clients(config, http_client)
    resolver = LinkResolver(config, http_client, twitter_client=twitter_client, drive_client=drive_client)
    logger.info(f"Initialized adapters for platforms: {resolver.get_supported_platforms()}")
except Exception as e:
    logger.error(f"Failed to initialize application: {e}")
    raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await http_client.close()


app = FastAPI(
    title="Media Link Resolution Service",
    description="Resolve media post URLs into direct download links",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_resolver() -> LinkResolver:
    return resolver


class ResolveRequest(BaseModel):
    url: str
    context: Optional[Any] = None


class LinkInfo(BaseModel):
    url: str
    filename: str = ""


class ResolveResponse(BaseModel):
    platform: str
    links: List[LinkInfo]
    count: int


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Dict] = {}
    user_message: str


def _status_code_for(exc: LinkResolverError) -> int:
    if isinstance(exc, UnsupportedURLError):
        return 400  # Bad Request
    if isinstance(exc, (InvalidURLError, ValidationError, ExtractionMissError, AmbiguousRedirectError)):
        return 422  # Unprocessable Entity
    if isinstance(exc, ConfigurationError):
        return 503  # Service Unavailable
    if isinstance(exc, RateLimitExceededError):
        return 429
    if isinstance(exc, UpstreamError):
        return 502  # Bad Gateway
    return 500


def jsonable_details(details: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value if isinstance(value, (str, int, float, bool, list, dict, type(None))) else str(value)
            for key, value in details.items()}


# Exception handlers
@app.exception_handler(LinkResolverError)
async def link_resolver_error_handler(request: Request, exc: LinkResolverError):
    logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra={"details": exc.details})

    return JSONResponse(
        status_code=_status_code_for(exc),
        content={
            "error": exc.__class__.__name__,
            "message": exc.message,
            "details": jsonable_details(exc.details),
            "user_message": create_user_friendly_error(exc)
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc}")

    # Extract field names and error messages
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        message = error["msg"]
        errors.append(f"{field}: {message}")

    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Input validation failed",
            "details": {"validation_errors": errors},
            "user_message": f"📝 Invalid input: {'; '.join(errors)}"
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
            "details": {"error_type": exc.__class__.__name__},
            "user_message": "❌ An unexpected error occurred. Please try again later."
        }
    )


@app.post("/resolve", response_model=ResolveResponse, responses={
    400: {"model": ErrorResponse, "description": "Unsupported URL"},
    422: {"model": ErrorResponse, "description": "Invalid URL or no media found"},
    502: {"model": ErrorResponse, "description": "Upstream service failed"},
    503: {"model": ErrorResponse, "description": "Platform not configured"},
    500: {"model": ErrorResponse, "description": "Internal server error"}
})
async def resolve_links(body: ResolveRequest, resolver: LinkResolver = Depends(get_resolver)):
    """
    Resolve a media post URL into direct download links.

    Each link comes with a suggested filename; an empty filename means the
    caller should derive one from the URL.
    """
    url = sanitize_url(body.url)
    logger.info(f"Resolving links for: {url}")

    resolution = await resolver.resolve_request(LinkRequest(url=url, context=body.context))

    return {
        "platform": resolution.platform.value,
        "links": [{"url": link.url, "filename": link.filename} for link in resolution.to_links()],
        "count": resolution.count,
    }


@app.get("/platforms")
async def get_supported_platforms(resolver: LinkResolver = Depends(get_resolver)):
    """
    Get list of supported platforms and their configuration status.
    """
    platforms = resolver.get_supported_platforms()
    platform_status = {}

    for platform in platforms:
        is_configured = resolver.is_platform_configured(platform)
        platform_status[platform] = {
            "available": True,
            "configured": is_configured,
            "status": "ready" if is_configured else "needs_configuration"
        }

    return {
        "platforms": platforms,
        "platform_status": platform_status,
        "total_configured": sum(1 for status in platform_status.values() if status["configured"])
    }


@app.get("/health")
async def health_check(resolver: LinkResolver = Depends(get_resolver)):
    """
    Health check endpoint with configuration status.
    """
    try:
        resolver.config.validate()

        platforms = resolver.get_supported_platforms()
        unconfigured = [p for p in platforms if not resolver.is_platform_configured(p)]

        health_status = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "configuration": {
                "valid": True,
                "platforms_available": len(platforms),
                "platforms_configured": len(platforms) - len(unconfigured),
                "unconfigured_platforms": unconfigured
            }
        }

        if unconfigured:
            health_status["status"] = "degraded"
            health_status["warnings"] = [f"Missing credentials for: {', '.join(unconfigured)}"]

        return health_status

    except ValueError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e),
                "user_message": create_user_friendly_error(e)
            }
        )
