"""
GHL → Mailchimp contact forwarder.

ContactForwarder.forward() is the whole forwarding operation:

  1. Check configuration            -> ConfigError
  2. Normalize the payload          -> ValidationError (no outbound calls)
  3. Upsert the member (PUT)        -> UpsertError, tag step skipped
  4. Apply tags (POST), if any      -> TagError, upsert is NOT rolled back
  5. Return a ForwardResult

Any other failure (network error, timeout, bug) surfaces as UnexpectedError.
Nothing here retries.
"""

import logging
from typing import Any, Optional

import httpx

from app.config import Settings
from app.errors import ForwardingError, TagError, UnexpectedError, UpsertError
from app.models.contact import ForwardResult
from app.services.contact_normalizer import normalize_contact, subscriber_hash
from app.services.mailchimp_client import MailchimpClient

logger = logging.getLogger(__name__)


class ContactForwarder:
    """Forwards one inbound contact event to Mailchimp."""

    def __init__(self, settings: Settings, client: Optional[MailchimpClient] = None):
        self.settings = settings
        self.client = client or MailchimpClient(settings)

    def forward(self, payload: Any) -> ForwardResult:
        """
        Upsert the contact described by ``payload`` and apply its tags.

        Raises:
            ConfigError:     Mailchimp settings are incomplete.
            ValidationError: no email could be resolved from the payload.
            UpsertError:     Mailchimp rejected the member upsert.
            TagError:        Mailchimp rejected the tag update.
            UnexpectedError: anything else.
        """
        try:
            return self._forward(payload)
        except ForwardingError:
            raise
        except httpx.TimeoutException as exc:
            raise UnexpectedError(
                "Mailchimp request timed out",
                details=f"no response within {self.settings.timeout_seconds}s",
            ) from exc
        except httpx.HTTPError as exc:
            raise UnexpectedError("Mailchimp request failed", details=str(exc)) from exc
        except Exception as exc:
            raise UnexpectedError("Server error", details=str(exc)) from exc

    def _forward(self, payload: Any) -> ForwardResult:
        self.settings.require_mailchimp()

        contact = normalize_contact(payload, self.settings.allowed_tags)
        member_id = subscriber_hash(contact.email)

        upsert_resp = self.client.upsert_member(member_id, contact)
        if not upsert_resp.is_success:
            raise UpsertError(
                "Mailchimp upsert failed",
                upstream_status=upsert_resp.status_code,
                upstream_body=upsert_resp.text,
            )
        logger.info("Upserted Mailchimp member %s", member_id)

        if contact.tags:
            tag_resp = self.client.add_tags(member_id, contact.tags)
            if not tag_resp.is_success:
                raise TagError(
                    "Mailchimp tag apply failed",
                    upstream_status=tag_resp.status_code,
                    upstream_body=tag_resp.text,
                )
            logger.info("Applied %d tag(s) to Mailchimp member %s", len(contact.tags), member_id)

        return ForwardResult(
            email=contact.email,
            first_name=contact.first_name,
            last_name=contact.last_name,
            applied_tags=list(contact.tags),
            subscriber_hash=member_id,
        )
