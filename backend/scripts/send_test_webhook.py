#!/usr/bin/env python3
"""
Send a simulated Airtable webhook to a running server.

Usage: send_test_webhook.py <create|update|delete> <tableId> <tableName> [recordId]
"""

import argparse
import json
import os
import sys
import uuid

import httpx
from dotenv import load_dotenv

load_dotenv(".env.local")
load_dotenv()

WEBHOOK_URL = os.getenv("WEBHOOK_URL", "http://localhost:8000/api/v1/webhook")
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET", "")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("event", choices=["create", "update", "delete"])
    parser.add_argument("table_id")
    parser.add_argument("table_name")
    parser.add_argument("record_id", nargs="?")
    args = parser.parse_args()

    payload = {
        "event": args.event,
        "tableId": args.table_id,
        "tableName": args.table_name,
        "recordId": args.record_id or f"rec{uuid.uuid4().hex[:14]}",
        "secret": WEBHOOK_SECRET,
    }
    print(f"Sending {args.event} webhook for table {args.table_name}", flush=True)
    print(json.dumps({**payload, "secret": "***"}, indent=2), flush=True)

    try:
        response = httpx.post(WEBHOOK_URL, json=payload, timeout=30.0)
    except httpx.RequestError as e:
        print(f"Error sending webhook: {e}", file=sys.stderr)
        return 1

    body = response.text
    if response.is_success:
        print(f"Webhook successful: {body}", flush=True)
        return 0
    print(f"Webhook failed ({response.status_code}): {body}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
