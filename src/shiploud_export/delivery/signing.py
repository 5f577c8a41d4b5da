"""
Module: signing.py
Description: HMAC-SHA256 request signing.

Signatures are computed over the exact bytes sent as the request
body and rendered in the X-Hub-Signature-256 header format.
"""

import hashlib
import hmac
from typing import Union

SIGNATURE_PREFIX = "sha256="


def _to_bytes(value: Union[bytes, str]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sign(serialized_payload: Union[bytes, str], secret: str) -> str:
    """
    Sign a serialized payload.

    Args:
        serialized_payload: Request body bytes (text is UTF-8 encoded)
        secret: Shared secret used as the HMAC key

    Returns:
        Signature string: "sha256=" followed by 64 lowercase hex characters

    Example:
        >>> sign(b'{"repo":"demo"}', "s3cret")[:7]
        'sha256='
    """
    digest = hmac.new(
        _to_bytes(secret),
        _to_bytes(serialized_payload),
        hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify(serialized_payload: Union[bytes, str], secret: str, signature: str) -> bool:
    """Check a signature in constant time."""
    if not signature or not signature.startswith(SIGNATURE_PREFIX):
        return False
    return hmac.compare_digest(sign(serialized_payload, secret), signature)
