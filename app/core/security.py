import hashlib
import hmac
from typing import Mapping

# Chapa signs the raw body into x-chapa-signature and the secret itself into Chapa-Signature
BODY_SIGNATURE_HEADER = "x-chapa-signature"
SECRET_SIGNATURE_HEADER = "chapa-signature"


def compute_signature(secret: str, message: bytes) -> str:
    """HMAC-SHA256 hex digest keyed with the webhook secret.

    Args:
        secret: The webhook secret configured on the Chapa dashboard
        message: Bytes to sign, the raw request body or the secret itself

    Returns:
        str: Lowercase hex digest
    """
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_webhook_signature(secret: str, body: bytes, headers: Mapping[str, str]) -> bool:
    """True when either Chapa signature header matches what Chapa puts in it"""
    body_signature = headers.get(BODY_SIGNATURE_HEADER)
    if body_signature and hmac.compare_digest(body_signature, compute_signature(secret, body)):
        return True

    secret_signature = headers.get(SECRET_SIGNATURE_HEADER)
    if secret_signature and hmac.compare_digest(secret_signature, compute_signature(secret, secret.encode())):
        return True

    return False
