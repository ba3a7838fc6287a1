"""
Partner Portal PDF Service - FastAPI Application Entry Point.

Exports partner proposals as paginated, watermarked PDF documents,
optionally rewritten by an AI drafting pass first.

Run with:
    uvicorn partner_portal.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from partner_portal.core.config import get_settings
from partner_portal.api.proposals import router as proposals_router
from partner_portal.integrations.drafting import DocumentDraftingService


# ===========================================
# Logging Configuration
# ===========================================

def setup_logging():
    """Configure application logging."""
    settings = get_settings()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ===========================================
# Application Lifespan
# ===========================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Create the drafting client on startup and close it on shutdown."""
    settings = get_settings()

    logger.info("=" * 50)
    logger.info("Partner Portal PDF Service Starting Up")
    logger.info("=" * 50)
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"AI drafting: {'enabled' if settings.AI_DRAFTING_ENABLED else 'disabled'}")

    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        logger.warning("Supabase credentials not configured!")

    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set. Document drafting will not work.")

    app.state.drafting_service = DocumentDraftingService.from_settings(settings)

    logger.info("Startup complete - ready to export proposals")

    yield

    await app.state.drafting_service.aclose()
    logger.info("Partner Portal PDF Service shutting down...")


# ===========================================
# FastAPI Application
# ===========================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Partner Portal PDF Service",
        description="""
        Proposal document export for the partner portal.

        ## Endpoints

        - `GET /api/proposals/{proposal_id}/export-pdf` - Export a stored proposal
        - `POST /api/proposals/render-pdf` - Render a proposal from the request body
        - `GET /health` - Health check
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.include_router(proposals_router)

    return app


app = create_app()


# ===========================================
# Root Endpoints
# ===========================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return JSONResponse({
        "service": "Partner Portal PDF Service",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "proposals": {
                "export_pdf": "GET /api/proposals/{proposal_id}/export-pdf",
                "render_pdf": "POST /api/proposals/render-pdf"
            },
            "health": "GET /health",
            "docs": "GET /docs"
        }
    })


@app.get("/health", tags=["root"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "partner-portal-pdf"}


# ===========================================
# Error Handlers
# ===========================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if get_settings().DEBUG else "An error occurred"
        }
    )


# ===========================================
# Main Entry Point
# ===========================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "partner_portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
