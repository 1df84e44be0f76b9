"""Validation of signed Slack slash command requests."""

from __future__ import annotations

from typing import Mapping, Optional

from fastapi import HTTPException, Request
from slack_sdk.signature import SignatureVerifier

TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_HEADER = "X-Slack-Signature"


def verify_slack_signature(headers: Mapping[str, str], body: bytes, signing_secret: Optional[str]) -> None:
    """Raise HTTPException unless ``body`` carries a fresh, valid Slack signature."""
    if not signing_secret:
        raise HTTPException(status_code=500, detail="Slack signing secret not configured")

    timestamp = headers.get(TIMESTAMP_HEADER)
    signature = headers.get(SIGNATURE_HEADER)
    if not timestamp or not signature:
        raise HTTPException(status_code=401, detail="Missing Slack signature headers")

    if not timestamp.isdigit():
        raise HTTPException(status_code=401, detail="Invalid Slack timestamp")

    verifier = SignatureVerifier(signing_secret)
    # Also rejects timestamps older than five minutes.
    if not verifier.is_valid(body=body, timestamp=timestamp, signature=signature):
        raise HTTPException(status_code=401, detail="Slack signature mismatch or expired timestamp")


def verify_slack_request(request: Request, body: bytes, signing_secret: Optional[str]) -> None:
    verify_slack_signature(request.headers, body, signing_secret)
