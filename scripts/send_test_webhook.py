#!/usr/bin/env python3
"""
Dev helper: send a test GHL contact webhook to the local bridge.

Builds a payload the way a GoHighLevel workflow "Custom Webhook" action would
send it and POSTs it to /webhooks/ghl-to-mailchimp.

Usage
-----
# Basic: flat payload, targeting localhost:8080
python scripts/send_test_webhook.py --email jane@example.com

# Tags as a comma-separated string
python scripts/send_test_webhook.py --email jane@example.com --tags "newsletter, vip"

# Only a full name; the bridge splits it into FNAME / LNAME
python scripts/send_test_webhook.py --email jane@example.com --full-name "Jane Q Public"

# Nest everything under "contact" like GHL's standard contact webhook
python scripts/send_test_webhook.py --email jane@example.com --nested

# Print the payload without sending it
python scripts/send_test_webhook.py --email jane@example.com --dry-run

Environment / .env
------------------
WEBHOOK_SECRET   Sent as X-Webhook-Secret when set. Overridden by --secret.
PORT             Port of the local server (default: 8080).
"""

import argparse
import json
import os
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

def build_payload(
    email: str,
    first_name: str = "",
    last_name: str = "",
    full_name: str = "",
    tags: str = "",
    nested: bool = False,
) -> dict:
    """
    Build a GHL webhook body.

    Flat payloads use snake_case keys and ``apply_tags``; nested payloads put
    camelCase fields under ``contact`` with tags as a list.
    """
    if nested:
        contact: dict = {"email": email}
        if first_name:
            contact["firstName"] = first_name
        if last_name:
            contact["lastName"] = last_name
        if tags:
            contact["tags"] = [t.strip() for t in tags.split(",") if t.strip()]
        payload: dict = {"contact": contact}
    else:
        payload = {"email": email}
        if first_name:
            payload["first_name"] = first_name
        if last_name:
            payload["last_name"] = last_name
        if tags:
            payload["apply_tags"] = tags

    if full_name:
        payload["full_name"] = full_name
    return payload


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # scripts/ lives one level below the project root
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    default_url = f"http://localhost:{os.getenv('PORT', '8080')}"

    parser = argparse.ArgumentParser(
        prog="send_test_webhook.py",
        description=textwrap.dedent("""\
            Send a test GHL contact webhook to the GHL Mailchimp bridge.

            Reads WEBHOOK_SECRET from the environment or a .env file in the
            project root.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--url", default=default_url, help=f"Bridge base URL (default: {default_url})")
    parser.add_argument("--email", required=True, help="Contact email address")
    parser.add_argument("--first-name", default="", help="First name")
    parser.add_argument("--last-name", default="", help="Last name")
    parser.add_argument("--full-name", default="", help='Full name, e.g. "Jane Q Public"')
    parser.add_argument("--tags", default="", help='Comma-separated tags, e.g. "newsletter, vip"')
    parser.add_argument("--nested", action="store_true", help="Nest fields under a contact object")
    parser.add_argument("--secret", default=None, help="Override WEBHOOK_SECRET")
    parser.add_argument("--timeout", type=float, default=30.0, help="Request timeout in seconds")
    parser.add_argument("--dry-run", action="store_true", help="Print the payload JSON without sending it.")

    args = parser.parse_args()

    payload = build_payload(
        email=args.email,
        first_name=args.first_name,
        last_name=args.last_name,
        full_name=args.full_name,
        tags=args.tags,
        nested=args.nested,
    )
    endpoint = f"{args.url.rstrip('/')}/webhooks/ghl-to-mailchimp"

    print(f"Endpoint : {endpoint}")
    print(f"Payload  : {json.dumps(payload)}")

    if args.dry_run:
        print("\n[DRY RUN] not sent")
        return 0

    headers = {}
    secret = args.secret or os.getenv("WEBHOOK_SECRET", "")
    if secret:
        headers["X-Webhook-Secret"] = secret

    try:
        response = httpx.post(endpoint, json=payload, headers=headers, timeout=args.timeout)
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the bridge running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload --port 8080",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
