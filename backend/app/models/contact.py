"""
Pydantic models for the GHL → Mailchimp contact forwarding flow.

Models:
  NormalizedContact       - contact fields after alias resolution and cleanup
  ForwardResult           - outcome of a successful forward (service layer)
  WebhookSuccessResponse  - 200 response body (camelCase keys on the wire)
  ErrorResponse           - 4xx/5xx response body
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class NormalizedContact(BaseModel):
    """
    Provider-agnostic contact extracted from an inbound GHL event.

    email is always trimmed and lower-cased; names are "" when unknown.
    tags are trimmed, de-duplicated in first-seen order and already filtered
    against the configured allow-list.
    """

    model_config = ConfigDict(frozen=True)

    email: str
    first_name: str = ""
    last_name: str = ""
    tags: list[str] = []


class ForwardResult(BaseModel):
    """What ContactForwarder.forward() returns when both calls succeed."""

    email: str
    first_name: str
    last_name: str
    applied_tags: list[str]
    subscriber_hash: str

    def to_response(self) -> "WebhookSuccessResponse":
        return WebhookSuccessResponse(
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            applied_tags=self.applied_tags,
        )


class WebhookSuccessResponse(BaseModel):
    """Body of a 200 response from POST /webhooks/ghl-to-mailchimp."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    applied_tags: list[str] = Field(alias="appliedTags")


class ErrorResponse(BaseModel):
    """Body of every error response: {"error": ..., "details": ...}."""

    error: str
    details: Optional[Any] = None
