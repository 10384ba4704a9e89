"""
Thin Mailchimp Marketing API (v3.0) client.

Only the two member calls the bridge needs:
  PUT  /lists/{audience_id}/members/{subscriber_hash}       - upsert member
  POST /lists/{audience_id}/members/{subscriber_hash}/tags  - add tags

Each call opens its own httpx.Client inside a ``with`` block, so the
connection is released as soon as the response has been read, and every
request is bounded by Settings.timeout_seconds.

Responses are returned as-is; deciding what a non-2xx status means is the
forwarder's job.
"""

import logging
from typing import Optional

import httpx

from app.config import Settings
from app.models.contact import NormalizedContact

logger = logging.getLogger(__name__)

_USER_AGENT = "ghl-mailchimp-bridge/0.1"


class MailchimpClient:
    """Issues member upsert / tag requests against one Mailchimp audience."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            settings:  Frozen configuration (api key, audience, data center, timeout).
            transport: Optional httpx transport; tests pass httpx.MockTransport.
        """
        self._settings = settings
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._settings.base_url,
            headers={
                "Authorization": f"apikey {self._settings.api_key}",
                "Content-Type": "application/json",
                "User-Agent": _USER_AGENT,
            },
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        )

    def _member_path(self, subscriber_hash: str) -> str:
        return f"/lists/{self._settings.audience_id}/members/{subscriber_hash}"

    def upsert_member(
        self, subscriber_hash: str, contact: NormalizedContact
    ) -> httpx.Response:
        """
        Create or fully replace the member keyed by subscriber_hash.

        New members are subscribed; existing members keep their status.
        FNAME / LNAME are always sent, as "" when unknown.
        """
        body = {
            "email_address": contact.email,
            "status_if_new": "subscribed",
            "merge_fields": {
                "FNAME": contact.first_name or "",
                "LNAME": contact.last_name or "",
            },
        }
        with self._client() as client:
            response = client.put(self._member_path(subscriber_hash), json=body)
        logger.debug("Mailchimp upsert %s -> HTTP %s", subscriber_hash, response.status_code)
        return response

    def add_tags(self, subscriber_hash: str, tags: list[str]) -> httpx.Response:
        """Mark every tag in ``tags`` active on the member."""
        body = {"tags": [{"name": tag, "status": "active"} for tag in tags]}
        with self._client() as client:
            response = client.post(
                f"{self._member_path(subscriber_hash)}/tags", json=body
            )
        logger.debug("Mailchimp add_tags %s -> HTTP %s", subscriber_hash, response.status_code)
        return response
