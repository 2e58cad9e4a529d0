"""Webhook signature handling for GitHub deliveries."""
from __future__ import annotations

from typing import Optional, Union

from githubkit.webhooks import verify

SIGNATURE_HEADER = "X-Hub-Signature-256"
EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"


class SignatureMissing(PermissionError):
    """Raised when a delivery carries no signature header."""


class SignatureMismatch(PermissionError):
    """Raised when a delivery signature does not match the configured secret."""


def verify_signature(secret: str, body: Union[str, bytes], signature: Optional[str]) -> None:
    """Check ``signature`` against the HMAC-SHA256 of ``body``.

    Raises :class:`SignatureMissing` or :class:`SignatureMismatch`.
    """

    if not signature:
        raise SignatureMissing("Missing signature")
    if not verify(secret, body, signature):
        raise SignatureMismatch("Signature does not match payload")
