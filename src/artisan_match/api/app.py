import logging
from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from artisan_match.api.dependencies import HandlerDep, lifespan
from artisan_match.config import settings
from artisan_match.dto import HealthCheckResponse, InvalidateResponse, SearchRequest, SearchResponse

API_VERSION = "0.1.0"


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Artisan Match API",
        description="Semantic artisan matching with keyword fallback",
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Artisan Match API",
            "version": API_VERSION,
            "description": "Semantic artisan matching with keyword fallback",
            "endpoints": {
                "search": "/search",
                "invalidate": "/profiles/{profile_id}/invalidate",
                "stats": "/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.post("/search", response_model=SearchResponse)
    async def search(request: SearchRequest, handler: HandlerDep) -> SearchResponse:
        """Rank artisans for a buyer query."""
        return await handler.search(request)

    @app.post("/profiles/{profile_id}/invalidate", response_model=InvalidateResponse)
    async def invalidate_profile(profile_id: str, handler: HandlerDep) -> InvalidateResponse:
        """Drop cached results and embeddings for an edited profile."""
        return await handler.invalidate_profile(profile_id)

    @app.get("/stats", response_model=dict[str, Any])
    async def get_stats(handler: HandlerDep) -> dict[str, Any]:
        """Search, cache and provider statistics."""
        return await handler.get_stats()

    return app


app = create_app()


def main() -> None:
    """Run the API with uvicorn."""
    uvicorn.run(
        "artisan_match.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    main()
