# summon/main.py
# Responsibility: Application entry point. Configures and launches the FastAPI app.

import logging

import uvicorn
from fastapi import FastAPI

from summon.config.settings import settings
from summon.routers import thumbnails

VERSION = "1.0.0"


def create_app() -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    """
    logging.basicConfig(
        level=logging.DEBUG if settings.SERVER.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Summon",
        description="Representative thumbnail extraction for arbitrary URLs.",
        version=VERSION,
        debug=settings.SERVER.DEBUG
    )

    # Register Routers
    app.include_router(thumbnails.router)

    # Health Check
    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "ok", "version": VERSION}

    return app

# Application instance
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "summon.main:app",
        host=settings.SERVER.HOST,
        port=settings.SERVER.PORT,
        reload=settings.SERVER.DEBUG
    )
