"""
Prompt Tester - Main Application Entry Point

Compare LLM outputs across models through an OpenRouter-compatible API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prompt_tester.core.config import get_settings
from prompt_tester.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info("Starting Prompt Tester...")

    from prompt_tester.infrastructure.local.database import init_db

    await init_db()

    if settings.SEED_DEFAULT_MODELS:
        from prompt_tester.api.deps import get_model_catalog_repository

        seeded = await get_model_catalog_repository().seed_defaults()
        if seeded:
            logger.info(f"Seeded model catalog with {seeded} default models")

    yield

    # Shutdown
    logger.info("Shutting down Prompt Tester...")
    from prompt_tester.api.deps import get_dispatch_service, get_persistence_writer

    get_dispatch_service().cancel_all()
    await get_persistence_writer().drain()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Prompt Tester",
        description="Send one prompt to many models and compare the answers",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    from prompt_tester.api import chat, keys, models, pricing, prompts, realtime, sessions

    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
    app.include_router(keys.router, prefix="/api/keys", tags=["keys"])
    app.include_router(models.router, prefix="/api/models", tags=["models"])
    app.include_router(prompts.router, prefix="/api/prompts", tags=["prompts"])
    app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
    app.include_router(pricing.router, prefix="/api/pricing", tags=["pricing"])
    app.include_router(realtime.router, prefix="/api/realtime", tags=["realtime"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
