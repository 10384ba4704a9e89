"""
Unit tests for the contact normalizer.

Tests convert raw GHL webhook payloads into NormalizedContact values and
check the subscriber hash Mailchimp uses as a member id.
"""

import hashlib

import pytest

from app.errors import ValidationError
from app.services.contact_normalizer import (
    extract_tags,
    filter_allowed_tags,
    normalize_contact,
    normalize_email,
    parse_tags,
    split_full_name,
    subscriber_hash,
)


# ---------------------------------------------------------------------------
# subscriber_hash
# ---------------------------------------------------------------------------

class TestSubscriberHash:
    """Mailchimp member ids are MD5 digests of the normalized email."""

    def test_matches_md5_of_lowercase_email(self):
        expected = hashlib.md5(b"jane@example.com").hexdigest()
        assert subscriber_hash("jane@example.com") == expected

    @pytest.mark.parametrize(
        "variant",
        ["Jane@Example.com", "  jane@example.com", "JANE@EXAMPLE.COM\n", "jane@example.com "],
    )
    def test_case_and_whitespace_do_not_change_hash(self, variant):
        assert subscriber_hash(variant) == subscriber_hash("jane@example.com")

    def test_different_emails_differ(self):
        assert subscriber_hash("a@example.com") != subscriber_hash("b@example.com")


class TestNormalizeEmail:

    def test_trims_and_lowercases(self):
        assert normalize_email("  Jane@Example.COM ") == "jane@example.com"

    def test_none_is_empty(self):
        assert normalize_email(None) == ""


# ---------------------------------------------------------------------------
# parse_tags
# ---------------------------------------------------------------------------

class TestParseTags:
    """Tags arrive as a list or a comma-separated string."""

    def test_list_and_string_forms_match(self):
        assert parse_tags(["a", "b"]) == ["a", "b"]
        assert parse_tags("a, b") == ["a", "b"]

    def test_single_string(self):
        assert parse_tags("newsletter") == ["newsletter"]

    def test_trims_and_drops_blanks(self):
        assert parse_tags(" a , , b ,") == ["a", "b"]
        assert parse_tags(["  a", "", "   ", None, "b "]) == ["a", "b"]

    def test_deduplicates_keeping_first_seen_order(self):
        assert parse_tags(["vip", "newsletter", "vip", " newsletter"]) == ["vip", "newsletter"]
        assert parse_tags("b, a, b") == ["b", "a"]

    def test_dedup_is_case_sensitive(self):
        assert parse_tags(["VIP", "vip"]) == ["VIP", "vip"]

    def test_non_string_items_are_stringified(self):
        assert parse_tags([2024, "x"]) == ["2024", "x"]

    @pytest.mark.parametrize("raw", [None, 5, {"name": "x"}])
    def test_unsupported_values_yield_no_tags(self, raw):
        assert parse_tags(raw) == []


class TestFilterAllowedTags:

    def test_allow_list_keeps_only_members(self):
        assert filter_allowed_tags(["newsletter", "vip"], ["newsletter"]) == ["newsletter"]

    def test_match_is_case_insensitive_and_keeps_spelling(self):
        assert filter_allowed_tags(["Newsletter", "VIP"], ["newsletter"]) == ["Newsletter"]

    def test_allow_list_entries_are_case_insensitive_too(self):
        assert filter_allowed_tags(["newsletter"], ["NEWSLETTER"]) == ["newsletter"]

    def test_empty_allow_list_keeps_everything(self):
        assert filter_allowed_tags(["a", "b"], []) == ["a", "b"]
        assert filter_allowed_tags(["a", "b"], ["", "  "]) == ["a", "b"]


class TestSplitFullName:

    def test_three_part_name(self):
        assert split_full_name("Jane Q Public") == ("Jane", "Q Public")

    def test_single_token(self):
        assert split_full_name("Cher") == ("Cher", "")

    def test_collapses_extra_whitespace(self):
        assert split_full_name("  Jane   Q\tPublic ") == ("Jane", "Q Public")

    def test_blank(self):
        assert split_full_name("   ") == ("", "")


# ---------------------------------------------------------------------------
# normalize_contact
# ---------------------------------------------------------------------------

class TestNormalizeContact:
    """End-to-end normalization of a GHL payload."""

    def test_flat_snake_case_payload(self):
        contact = normalize_contact({
            "email": " Jane@Example.com ",
            "first_name": "Jane",
            "last_name": "Public",
            "tags": "newsletter, vip",
        })
        assert contact.email == "jane@example.com"
        assert contact.first_name == "Jane"
        assert contact.last_name == "Public"
        assert contact.tags == ["newsletter", "vip"]

    def test_nested_contact_payload(self):
        contact = normalize_contact({
            "contact": {
                "email": "jane@example.com",
                "firstName": "Jane",
                "lastName": "Public",
                "tags": ["newsletter"],
            }
        })
        assert contact.email == "jane@example.com"
        assert (contact.first_name, contact.last_name) == ("Jane", "Public")
        assert contact.tags == ["newsletter"]

    def test_merge_field_style_names(self):
        contact = normalize_contact({"email": "a@b.com", "FNAME": "Ann", "LNAME": "Lee"})
        assert (contact.first_name, contact.last_name) == ("Ann", "Lee")

    def test_full_name_fallback(self):
        contact = normalize_contact({"email": "a@b.com", "full_name": "Jane Q Public"})
        assert contact.first_name == "Jane"
        assert contact.last_name == "Q Public"

    def test_explicit_first_name_keeps_full_name_for_last(self):
        contact = normalize_contact({
            "email": "a@b.com",
            "first_name": "Janet",
            "full_name": "Jane Q Public",
        })
        assert contact.first_name == "Janet"
        assert contact.last_name == "Q Public"

    def test_names_default_to_empty_strings(self):
        contact = normalize_contact({"email": "a@b.com"})
        assert contact.first_name == ""
        assert contact.last_name == ""
        assert contact.tags == []

    def test_allow_list_applied(self):
        contact = normalize_contact(
            {"email": "a@b.com", "tags": ["newsletter", "vip"]},
            allowed_tags=("newsletter",),
        )
        assert contact.tags == ["newsletter"]

    def test_missing_email_raises_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_contact({"first_name": "Jane", "tags": ["vip"]})
        assert exc_info.value.message == "email is required"
        assert exc_info.value.http_status == 400

    def test_whitespace_email_raises_validation_error(self):
        with pytest.raises(ValidationError):
            normalize_contact({"email": "   "})

    @pytest.mark.parametrize("payload", [None, [], "email=a@b.com", 42])
    def test_non_object_payload_raises_validation_error(self, payload):
        with pytest.raises(ValidationError):
            normalize_contact(payload)


class TestExtractTags:
    """The first tag alias that parses to at least one tag wins."""

    def test_separator_only_value_falls_through(self):
        assert extract_tags({"apply_tags": " , ", "tags": ["vip"]}) == ["vip"]

    def test_blank_list_entries_fall_through_to_nested(self):
        payload = {"tags": ["", "  "], "contact": {"tags": "newsletter"}}
        assert extract_tags(payload) == ["newsletter"]

    def test_first_usable_alias_wins(self):
        assert extract_tags({"applyTags": "a", "tags": ["b"]}) == ["a"]

    def test_unsupported_value_falls_through(self):
        assert extract_tags({"apply_tags": 7, "tag": "vip"}) == ["vip"]

    def test_nothing_usable(self):
        assert extract_tags({"apply_tags": ",", "tags": []}) == []

    def test_normalize_contact_uses_fall_through(self):
        contact = normalize_contact({"email": "a@b.com", "apply_tags": " , ", "tags": ["vip"]})
        assert contact.tags == ["vip"]
