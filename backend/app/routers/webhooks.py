"""
GHL webhook router.

Receives contact events from GoHighLevel workflow webhooks and forwards them
to Mailchimp via ContactForwarder.

Environment variables
---------------------
WEBHOOK_SECRET    Optional shared secret. When set, requests must carry the
                  same value in the X-Webhook-Secret header. When unset the
                  endpoint accepts every request.

Endpoints:
  POST /ghl-to-mailchimp    - upsert a Mailchimp member and apply its tags

Responses:
  200  {"success": true, "email", "firstName", "lastName", "appliedTags"}
  400  {"error", "details"}  - missing email, bad JSON, Mailchimp rejection
  401  {"error", "details"}  - wrong or missing X-Webhook-Secret
  413  {"error", "details"}  - body larger than MAX_BODY_BYTES (1 MB)
  500  {"error", "details"}  - missing configuration, unexpected failure
"""

import hmac
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.config import Settings, get_settings
from app.errors import (
    ConfigError,
    ForwardingError,
    PayloadTooLargeError,
    UnexpectedError,
    UpstreamError,
    ValidationError,
)
from app.models.contact import ErrorResponse, WebhookSuccessResponse
from app.services.forwarder import ContactForwarder

logger = logging.getLogger(__name__)

router = APIRouter()

# Larger request bodies are refused with 413
MAX_BODY_BYTES = 1024 * 1024


class WebhookAuthError(ForwardingError):
    """The X-Webhook-Secret header did not match WEBHOOK_SECRET."""

    http_status = 401


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_forwarder(settings: Settings = Depends(get_settings)) -> ContactForwarder:
    """Build the forwarder for a request. Tests replace this via dependency_overrides."""
    return ContactForwarder(settings)


def verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Check the shared secret when one is configured.

    Raises WebhookAuthError (401) if WEBHOOK_SECRET is set and the header is
    missing or different.
    """
    expected = settings.webhook_secret
    if not expected:
        return

    provided = x_webhook_secret or ""
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise WebhookAuthError("Invalid webhook secret")


def require_mailchimp_config(settings: Settings = Depends(get_settings)) -> None:
    """Reject with ConfigError (500) before the body is read if forwarding is unconfigured."""
    settings.require_mailchimp()


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------

async def forwarding_error_handler(request: Request, exc: ForwardingError) -> JSONResponse:
    """
    Log a ForwardingError and turn it into an {"error", "details"} response.

    Registered on the app in app.main for every ForwardingError subclass.
    """
    if isinstance(exc, UpstreamError):
        logger.warning(
            "%s: upstream HTTP %s: %s",
            exc.message,
            exc.upstream_status,
            exc.upstream_body,
        )
    elif isinstance(exc, UnexpectedError):
        logger.error("%s: %s", exc.message, exc.details, exc_info=exc.__cause__ or exc)
    elif isinstance(exc, ConfigError):
        logger.error("%s", exc.message)
    else:
        logger.warning("Rejected webhook on %s: %s", request.url.path, exc.message)

    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: report any other exception as UnexpectedError (500)."""
    wrapped = UnexpectedError("Server error", details=str(exc))
    wrapped.__cause__ = exc
    return await forwarding_error_handler(request, wrapped)


def _too_large(size: int) -> PayloadTooLargeError:
    return PayloadTooLargeError(
        "request body too large",
        details=f"{size} bytes exceeds the {MAX_BODY_BYTES} byte limit",
    )


async def _read_payload(request: Request):
    """
    Decode the JSON body. An empty body is treated as {}.

    Bodies over MAX_BODY_BYTES are rejected with 413, first by the declared
    Content-Length and then by the bytes actually received.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        raise _too_large(int(declared))

    raw = await request.body()
    if len(raw) > MAX_BODY_BYTES:
        raise _too_large(len(raw))
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise ValidationError("invalid JSON body", details=str(e))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/ghl-to-mailchimp",
    response_model=WebhookSuccessResponse,
    responses={
        200: {
            "description": "Member upserted and tags applied",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "email": "jane@example.com",
                        "firstName": "Jane",
                        "lastName": "Public",
                        "appliedTags": ["newsletter"],
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Missing email or Mailchimp rejected the request"},
        401: {"model": ErrorResponse, "description": "Invalid webhook secret"},
        413: {"model": ErrorResponse, "description": "Request body larger than 1 MB"},
        500: {"model": ErrorResponse, "description": "Configuration missing or unexpected failure"},
    },
    dependencies=[Depends(verify_webhook_secret), Depends(require_mailchimp_config)],
)
async def ghl_to_mailchimp(
    request: Request,
    forwarder: ContactForwarder = Depends(get_forwarder),
):
    """
    Upsert the contact in the event body into the Mailchimp audience, then
    apply its tags.

    The forwarder does blocking HTTP, so it runs in the threadpool. If the
    caller disconnects mid-flight the Mailchimp calls still complete.
    """
    payload = await _read_payload(request)
    result = await run_in_threadpool(forwarder.forward, payload)

    logger.info(
        "Forwarded member %s to Mailchimp (%d tag(s) applied)",
        result.subscriber_hash,
        len(result.applied_tags),
    )
    logger.debug("Member %s is %s", result.subscriber_hash, result.email)
    return result.to_response()
