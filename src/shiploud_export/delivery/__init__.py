"""
Package: delivery
Description: Signed payload delivery to the ingest endpoint.

Provides HMAC-SHA256 request signing, push delivery over HTTP and
the exponential-backoff retry policy used between attempts.
"""

from .exceptions import DeliveryError, ExportError
from .push import IngestDeliveryClient
from .signing import sign, verify

__all__ = [
    "DeliveryError",
    "ExportError",
    "IngestDeliveryClient",
    "sign",
    "verify",
]
