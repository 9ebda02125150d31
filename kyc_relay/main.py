"""FastAPI application entry point."""

import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from kyc_relay.config import settings
from kyc_relay.cors import cors_middleware
from kyc_relay.exceptions import ProviderError, RunNotFoundError
from kyc_relay.routes import applicants, webhooks, workflow_runs

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="KYC Relay",
    description="Relay between client apps and the Onfido identity verification API",
    version="0.1.0",
)

# CORS middleware
app.middleware("http")(cors_middleware)

# Include routers
app.include_router(webhooks.router)
app.include_router(applicants.router)
app.include_router(workflow_runs.router)


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    """Surface Onfido failures with their status and error payload."""
    return JSONResponse(
        status_code=exc.status or 500,
        content={"error": exc.message, "details": exc.payload},
    )


@app.exception_handler(RunNotFoundError)
async def run_not_found_handler(request: Request, exc: RunNotFoundError):
    return JSONResponse(status_code=404, content={"message": "not found"})


@app.on_event("startup")
async def startup_event():
    logger.info(
        f"Starting KYC relay against {settings.ONFIDO_API_BASE}/{settings.ONFIDO_API_VERSION}, "
        f"merge precedence: {settings.MERGE_PRECEDENCE}"
    )
    if not settings.ONFIDO_WEBHOOK_TOKEN:
        logger.warning("ONFIDO_WEBHOOK_TOKEN not set, webhook signatures are not verified")


@app.get("/healthz", response_class=PlainTextResponse)
def healthz():
    """Health check endpoint."""
    return "ok"


# Serve static files (frontend)
static_dir = os.path.join(os.path.dirname(__file__), "static")
if os.path.exists(static_dir):
    app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.get("/")
    def serve_frontend():
        """Serve frontend HTML."""
        return FileResponse(os.path.join(static_dir, "index.html"))
else:
    @app.get("/")
    def root():
        """Root endpoint when no frontend."""
        return {
            "name": "KYC Relay",
            "version": "0.1.0",
            "status": "running",
        }


def run():
    """Run the server with uvicorn."""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
