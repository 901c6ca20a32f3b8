"""CORS setup."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recipe_ai.config import settings


def setup_cors(app: FastAPI) -> None:
    """Setup CORS middleware."""
    origins = settings.cors_origins_list

    # Wildcard origins cannot be combined with credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
