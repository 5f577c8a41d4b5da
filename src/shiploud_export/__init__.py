"""
Package: shiploud_export
Description: Signed commit export client for the shiploud.so ingest API.

Serializes commit payloads, signs them with HMAC-SHA256 and pushes
them to the ingest endpoint with bounded exponential-backoff retries.
"""

__version__ = "1.0.1"

from .delivery import DeliveryError, IngestDeliveryClient, sign, verify
from .models import Attempt, AttemptOutcome, DeliveryResult, ExportPayload

__all__ = [
    "__version__",
    "Attempt",
    "AttemptOutcome",
    "DeliveryError",
    "DeliveryResult",
    "ExportPayload",
    "IngestDeliveryClient",
    "sign",
    "verify",
]
