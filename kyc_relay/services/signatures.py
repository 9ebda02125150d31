"""Onfido webhook signature verification."""

import hashlib
import hmac
from typing import Optional

SIGNATURE_HEADER = "X-SHA2-Signature"


def compute_signature(secret: str, raw_body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes, signature_header: Optional[str], secret: str) -> bool:
    """
    Check an X-SHA2-Signature header against the raw webhook body.

    Args:
        raw_body: Request body exactly as received
        signature_header: Header value, hex encoded HMAC-SHA256
        secret: Webhook token configured in the Onfido dashboard

    Returns:
        True if the signature matches
    """
    if not signature_header:
        return False
    provided = signature_header.strip().lower()
    return hmac.compare_digest(provided, compute_signature(secret, raw_body))
