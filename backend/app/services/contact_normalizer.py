"""
Normalization service for inbound GHL contact events.

Converts a raw webhook payload into a NormalizedContact: resolves the
email / name / tag aliases, splits full_name when explicit names are absent,
cleans up the tag list and applies the optional tag allow-list.
"""

import hashlib
import logging
from typing import Any, Iterable, Mapping, Optional

from app.errors import ValidationError
from app.models.contact import NormalizedContact
from app.services.field_resolver import (
    FIELD_ALIASES,
    get_path,
    is_empty,
    resolve_field,
    resolve_text,
)

logger = logging.getLogger(__name__)


def normalize_email(value: Optional[Any]) -> str:
    """Trim and lower-case an email value. None -> ""."""
    if value is None:
        return ""
    return str(value).strip().lower()


def subscriber_hash(email: str) -> str:
    """
    Mailchimp member id for an email address.

    Mailchimp keys list members by the MD5 hex digest of the lower-cased
    address, so "Jane@Example.com " and "jane@example.com" map to the same
    member.
    """
    return hashlib.md5(normalize_email(email).encode("utf-8")).hexdigest()


def parse_tags(raw: Any) -> list[str]:
    """
    Normalise a tag value into a de-duplicated list.

    Accepts:
      ["a", "b"]   -> ["a", "b"]
      "a, b"       -> ["a", "b"]
      "a"          -> ["a"]
      None / other -> []

    Entries are trimmed, blanks dropped, and duplicates removed keeping the
    first occurrence. Matching is case-sensitive.
    """
    if isinstance(raw, str):
        items: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        if raw is not None:
            logger.debug("parse_tags: ignoring unsupported tag value %r", raw)
        return []

    seen: set = set()
    tags: list[str] = []
    for item in items:
        if item is None:
            continue
        tag = str(item).strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        tags.append(tag)
    return tags


def filter_allowed_tags(tags: list[str], allowed_tags: Iterable[str]) -> list[str]:
    """
    Keep only tags present in the allow-list (case-insensitive).

    An empty allow-list allows everything. Kept tags retain their original
    spelling and order.
    """
    allowed = {t.strip().lower() for t in allowed_tags if t and t.strip()}
    if not allowed:
        return list(tags)
    return [tag for tag in tags if tag.lower() in allowed]


def extract_tags(payload: Mapping[str, Any]) -> list[str]:
    """
    Parse tags from the first tag alias that yields at least one tag.

    An alias holding only blanks or separators (e.g. " , ") falls through to
    the next one, like an absent key would.
    """
    for path in FIELD_ALIASES["tags"]:
        value = get_path(payload, path)
        if is_empty(value):
            continue
        tags = parse_tags(value)
        if tags:
            return tags
    return []


def split_full_name(full_name: str) -> tuple[str, str]:
    """
    Split "Jane Q Public" into ("Jane", "Q Public").

    The first whitespace-separated token is the first name; the rest, joined
    by single spaces, is the last name.
    """
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def normalize_contact(
    payload: Mapping[str, Any],
    allowed_tags: Iterable[str] = (),
) -> NormalizedContact:
    """
    Build a NormalizedContact from an inbound event payload.

    Args:
        payload:      Decoded webhook JSON. Non-mapping bodies are treated as {}.
        allowed_tags: Optional tag allow-list.

    Raises:
        ValidationError: if no non-empty email can be resolved.
    """
    if not isinstance(payload, Mapping):
        logger.debug("normalize_contact: payload is %s, not an object", type(payload).__name__)
        payload = {}

    email = normalize_email(resolve_field(payload, "email"))
    if not email:
        raise ValidationError("email is required")

    first_name = resolve_text(payload, "first_name")
    last_name = resolve_text(payload, "last_name")
    if not first_name or not last_name:
        split_first, split_last = split_full_name(resolve_text(payload, "full_name"))
        first_name = first_name or split_first
        last_name = last_name or split_last

    extracted = extract_tags(payload)
    tags = filter_allowed_tags(extracted, allowed_tags)
    if len(tags) != len(extracted):
        logger.info(
            "Dropped %d tag(s) not in allow-list: %s",
            len(extracted) - len(tags),
            [t for t in extracted if t not in tags],
        )

    return NormalizedContact(
        email=email,
        first_name=first_name,
        last_name=last_name,
        tags=tags,
    )
