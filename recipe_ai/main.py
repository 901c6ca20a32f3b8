"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from recipe_ai import __version__
from recipe_ai.api.routes import events, health, ingredients, meal_plans, recipes
from recipe_ai.config import settings
from recipe_ai.core.request_id import get_request_id
from recipe_ai.middleware.logging import RequestLoggingMiddleware
from recipe_ai.middleware.rate_limit import get_rate_limit_exceeded_handler, limiter
from recipe_ai.middleware.security import setup_cors
from recipe_ai.utils.exceptions import (
    GenerationCancelled,
    GenerationError,
    ImageProcessingError,
    ModelConnectionError,
    ModelRateLimitError,
    ModelServiceError,
    RecipeAIException,
    ValidationError,
)
from recipe_ai.utils.logging_config import setup_logging

# Setup logging
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Recipe AI API",
    description="Inventory-aware recipe generation, ingredient photo analysis and meal planning",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, get_rate_limit_exceeded_handler())

# Most specific first
EXCEPTION_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Validation error"),
    (ImageProcessingError, status.HTTP_400_BAD_REQUEST, "Image processing error"),
    (ModelRateLimitError, status.HTTP_429_TOO_MANY_REQUESTS, "Model rate limit reached"),
    (GenerationError, status.HTTP_502_BAD_GATEWAY, "Recipe generation failed"),
    (ModelConnectionError, status.HTTP_503_SERVICE_UNAVAILABLE, "Model service unreachable"),
    (ModelServiceError, status.HTTP_502_BAD_GATEWAY, "Model service error"),
    (GenerationCancelled, status.HTTP_408_REQUEST_TIMEOUT, "Generation cancelled"),
)


def status_for(exc: RecipeAIException):
    for exc_type, status_code, error_message in EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return status_code, error_message
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances
    return jsonable_encoder([{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()])


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with detailed messages."""
    request_id = get_request_id()

    logger.warning(
        f"Validation error: {str(exc)}",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation error",
            "detail": jsonable_errors(exc),
            "request_id": request_id,
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Flatten ``{"error", "detail"}`` HTTPException details into the common error shape."""
    if isinstance(exc.detail, dict):
        error = exc.detail.get("error", "Error")
        detail = exc.detail.get("detail")
    else:
        error, detail = exc.detail, None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error, "detail": detail, "request_id": get_request_id()},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RecipeAIException)
async def recipe_ai_exception_handler(request: Request, exc: RecipeAIException) -> JSONResponse:
    """Handle domain exceptions."""
    request_id = get_request_id()
    status_code, error_message = status_for(exc)

    log = logger.warning if status_code < 500 else logger.error
    log(
        f"Exception: {error_message}",
        extra={"request_id": request_id, "exception": str(exc), "path": request.url.path},
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_message,
            "detail": str(exc),
            "request_id": request_id,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = get_request_id()

    logger.error(
        f"Unexpected exception: {str(exc)}",
        extra={"request_id": request_id},
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred",
            "request_id": request_id,
        },
    )


# Add middleware (order matters!)
app.add_middleware(RequestLoggingMiddleware)
setup_cors(app)

# Include routers
app.include_router(health.router)
app.include_router(recipes.router)
app.include_router(events.router)
app.include_router(ingredients.router)
app.include_router(meal_plans.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    logger.info("Recipe AI API starting up...")
    logger.info(f"Model provider: {settings.model_provider}")
    logger.info(f"Rate limit: {settings.rate_limit_per_hour} requests/hour")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Recipe AI API",
        "version": __version__,
        "docs": "/docs",
    }
