"""FastAPI application factory."""

from fastapi import FastAPI

from storytext.api.middleware import storytext_error_handler
from storytext.api.routes import batches, stories
from storytext.models.errors import StoryTextError

VERSION = "0.1.0"


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Story Text Worker",
        description="Expands story prompts into segments and fans out media tasks",
        version=VERSION,
    )

    app.add_exception_handler(StoryTextError, storytext_error_handler)

    app.include_router(batches.router)
    app.include_router(stories.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": VERSION}

    return app
