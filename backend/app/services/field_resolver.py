"""
Field resolution for loosely-structured GHL webhook payloads.

GHL custom webhooks are configured by hand, so the same value shows up under
different keys depending on who set up the workflow: snake_case, camelCase,
Mailchimp merge-field style (FNAME/LNAME), or nested under "contact".

FIELD_ALIASES maps each canonical field to an ordered list of alias paths.
A dotted path ("contact.email") descends into nested mappings. The first
alias holding a non-empty value wins.

Adding a new alias:
  1. Append the path to the right entry in FIELD_ALIASES (position = priority).
  2. Add a test case in tests/test_field_resolver.py.
"""

from typing import Any, Mapping, Optional, Sequence

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "email": (
        "email",
        "Email",
        "contact.email",
    ),
    "first_name": (
        "first_name",
        "firstName",
        "FNAME",
        "fname",
        "contact.first_name",
        "contact.firstName",
    ),
    "last_name": (
        "last_name",
        "lastName",
        "LNAME",
        "lname",
        "contact.last_name",
        "contact.lastName",
    ),
    # Only consulted when first_name / last_name resolve to nothing
    "full_name": (
        "full_name",
        "fullName",
        "contact.full_name",
        "contact.fullName",
    ),
    "tags": (
        "apply_tags",
        "applyTags",
        "tags",
        "tag",
        "contact.tags",
    ),
}

_MISSING = object()


def get_path(payload: Mapping[str, Any], path: str) -> Any:
    """
    Look up a dotted path in a nested mapping.

    Returns the module-private _MISSING sentinel when any segment is absent or
    an intermediate value is not a mapping.
    """
    current: Any = payload
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def is_empty(value: Any) -> bool:
    """
    True for values that should fall through to the next alias.

    Empty means: missing, None, whitespace-only string, or an empty
    list/tuple. False and 0 are real values.
    """
    if value is _MISSING or value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def resolve_first(payload: Mapping[str, Any], paths: Sequence[str]) -> Optional[Any]:
    """Return the value at the first path holding a non-empty value, else None."""
    for path in paths:
        value = get_path(payload, path)
        if not is_empty(value):
            return value
    return None


def resolve_field(
    payload: Mapping[str, Any],
    field: str,
    aliases: Optional[Mapping[str, Sequence[str]]] = None,
) -> Optional[Any]:
    """
    Resolve a canonical field using the alias table.

    Args:
        payload: Inbound event mapping.
        field:   Canonical field name, a key of the alias table.
        aliases: Alternate alias table (defaults to FIELD_ALIASES).

    Raises KeyError for unknown canonical fields.
    """
    table = FIELD_ALIASES if aliases is None else aliases
    return resolve_first(payload, table[field])


def resolve_text(payload: Mapping[str, Any], field: str) -> str:
    """Resolve a scalar field and return it as a trimmed string ("" if unset)."""
    value = resolve_field(payload, field)
    if value is None:
        return ""
    return str(value).strip()
