"""
FastAPI backend for card_builder

Print spec resolution, preflight and export for the design editor.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from card_builder import __version__
from card_builder.config.settings import settings
from card_builder.errors import CardBuilderError
from web.backend.api import export_api, preflight, print_spec

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Card Builder API",
    description="Print geometry, preflight and export for cards, postcards and prints",
    version=__version__,
)

# CORS middleware - allow the editor frontend to communicate
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CardBuilderError)
async def card_builder_exception_handler(request: Request, exc: CardBuilderError):
    """Library errors that escaped a route are caller errors."""
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return error messages as JSON."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc)},
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Card Builder API",
        "version": __version__,
        "docs": "/docs",
        "status": "running",
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy", "services": {"api": "running"}}


app.include_router(print_spec.router, prefix="/api/print-spec", tags=["print-spec"])
app.include_router(preflight.router, prefix="/api/preflight", tags=["preflight"])
app.include_router(export_api.router, prefix="/api/export", tags=["export"])


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    logger.info("Starting Card Builder API, docs at http://localhost:8000/docs")
    uvicorn.run(app, host="0.0.0.0", port=8000)
