"""
Error taxonomy for webhook forwarding.

Services raise these; only the webhook router turns them into HTTP responses.
Each error carries the status code it maps to, a short client-facing message
and a details value that ends up in the {"error", "details"} response body.
"""

from typing import Any, Optional


class ForwardingError(Exception):
    """Base class for every failure of the forwarding operation."""

    http_status = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> dict:
        return {"error": self.message, "details": self.details}


class ValidationError(ForwardingError):
    """The inbound payload cannot be forwarded (e.g. no email). Client-fixable."""

    http_status = 400


class ConfigError(ForwardingError):
    """Deployment configuration is incomplete. Operator-fixable."""

    http_status = 500


class UpstreamError(ForwardingError):
    """Mailchimp answered with a non-2xx status."""

    http_status = 400

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        upstream_body: str = "",
    ):
        super().__init__(
            message,
            details={"status": upstream_status, "body": upstream_body},
        )
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class UpsertError(UpstreamError):
    """The member create-or-update call was rejected."""


class TagError(UpstreamError):
    """
    The tag-apply call was rejected.

    The member upsert has already succeeded at this point and is left in place.
    """


class UnexpectedError(ForwardingError):
    """Anything else, including network failures and timeouts."""

    http_status = 500


class PayloadTooLargeError(ForwardingError):
    """The request body exceeds the accepted size."""

    http_status = 413
