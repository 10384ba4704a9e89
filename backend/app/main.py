"""
GHL → Mailchimp bridge API.
FastAPI application that forwards GoHighLevel contact webhooks to Mailchimp.
"""

import logging

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import Settings, get_settings
from app.errors import ForwardingError
from app.routers import webhooks

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

HEALTH_TEXT = "OK - Mailchimp X GHL backend running"

app = FastAPI(
    title="GHL Mailchimp Bridge",
    description="Forwards GoHighLevel contact webhooks to a Mailchimp audience",
    version="0.1.0",
)

app.add_exception_handler(ForwardingError, webhooks.forwarding_error_handler)
app.add_exception_handler(Exception, webhooks.unhandled_error_handler)

app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])


@app.on_event("startup")
async def log_startup() -> None:
    """
    Log where the API listens and whether forwarding is configured.

    Example output:

        GHL Mailchimp bridge running at http://localhost:8080
        Mailchimp audience abc123 on us18 (allowed tags: all)
    """
    settings = get_settings()
    logger.info("GHL Mailchimp bridge running at http://localhost:%s", settings.port)
    if not settings.missing():
        logger.info(
            "Mailchimp audience %s on %s (allowed tags: %s)",
            settings.audience_id,
            settings.data_center,
            ", ".join(settings.allowed_tags) or "all",
        )


@app.get("/", response_class=PlainTextResponse)
async def root():
    return HEALTH_TEXT


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/config")
async def health_config(settings: Settings = Depends(get_settings)):
    """
    Readiness check: are the Mailchimp settings needed for forwarding present?

    Returns 503 listing the missing environment variables otherwise. Never
    calls Mailchimp.
    """
    missing = settings.missing()
    if missing:
        return JSONResponse(
            status_code=503,
            content={"status": "unconfigured", "missing": missing},
        )
    return {"status": "ok"}


def run() -> None:
    """Console entry point: serve the app with uvicorn on $PORT."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)


if __name__ == "__main__":
    run()
