from typing import Any, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .routes import device_router


def create_app(components: Any, cors_origins: Optional[List[str]] = None) -> FastAPI:
    """Build the FastAPI application around initialized components"""
    app = FastAPI(
        title="IoT Dispatch Gateway",
        description="Routes device notifications to demozone endpoints",
        version=__version__
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else ["*"],
        allow_methods=["*"],
        allow_headers=["*"]
    )

    # Store app state for dependency injection
    app.state.components = components

    app.include_router(device_router)
    return app
