"""
Module: push.py
Description: Signed push delivery to the ingest endpoint.

Serializes the payload once, signs it, and POSTs it to the ingest
URL. Every HTTP exchange is classified into an Attempt; transport
errors, non-2xx responses and non-JSON bodies are all retried with
exponential backoff until the attempt budget is exhausted.
"""

import asyncio
import json
import math
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

import httpx
from pydantic import BaseModel
from tenacity import RetryError

from .. import __version__
from ..config.settings import Settings, resolve_ingest_url
from ..models.delivery import Attempt, AttemptOutcome, DeliveryResult
from ..utils.logger import get_logger
from .exceptions import DeliveryError
from .retry import SleepFn, build_retrying
from .signing import sign

logger = get_logger(__name__)

USER_AGENT = f"shiploud.so-Action/{__version__}"
SIGNATURE_HEADER = "X-Hub-Signature-256"
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 1.0
# Response bodies are cut to this many characters in error messages
ERROR_BODY_LIMIT = 200

Payload = Union[Mapping[str, Any], BaseModel]


def job_minutes_since(start_time: datetime, now: Optional[datetime] = None) -> int:
    """
    Whole minutes elapsed since start_time, rounded up, never below 1.

    Naive and aware datetimes are both accepted; now defaults to the
    current time in start_time's timezone.
    """
    now = now or datetime.now(start_time.tzinfo)
    elapsed = (now - start_time).total_seconds()
    return max(1, math.ceil(elapsed / 60))


def prepare_payload(payload: Payload, start_time: datetime) -> Dict[str, Any]:
    """
    Shallow-copy the payload and attach job_minutes.

    Args:
        payload: Mapping or pydantic model to deliver
        start_time: When the enclosing job started

    Returns:
        New dict; the caller's payload is left untouched
    """
    if isinstance(payload, BaseModel):
        data = payload.model_dump(mode='json', exclude_none=True)
    else:
        data = dict(payload)
    data['job_minutes'] = job_minutes_since(start_time)
    return data


def serialize_payload(payload: Mapping[str, Any]) -> bytes:
    """Compact UTF-8 JSON; these exact bytes are signed and sent."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class IngestDeliveryClient:
    """
    HTTP client for pushing signed payloads to the ingest endpoint.

    The ingest URL and retry budget are fixed at construction; each
    deliver() call owns its own HTTP client and retry state, so one
    instance can serve concurrent deliveries.
    """

    def __init__(
        self,
        ingest_url: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        timeout_seconds: float = 10.0,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        """
        Initialize the delivery client.

        Args:
            ingest_url: Ingest endpoint URL
            max_attempts: Total attempts per delivery
            base_delay: Backoff delay in seconds after the first failure
            timeout_seconds: HTTP timeout per attempt
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests use httpx.MockTransport)
            sleep: Awaitable sleep used between attempts

        Raises:
            ValueError: If ingest_url is invalid or max_attempts < 1
        """
        if not ingest_url or not isinstance(ingest_url, str):
            raise ValueError("ingest_url must be a non-empty string")
        if not ingest_url.startswith(('http://', 'https://')):
            raise ValueError("ingest_url must be a valid HTTP/HTTPS URL")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.ingest_url = ingest_url
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.user_agent = user_agent
        self.timeout = httpx.Timeout(timeout_seconds, connect=timeout_seconds)
        self._transport = transport
        self._sleep = sleep

        logger.debug(
            "Ingest delivery client initialized",
            ingest_url=ingest_url,
            max_attempts=max_attempts,
            timeout_seconds=timeout_seconds
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        ingest_url: Optional[str] = None,
        **kwargs: Any,
    ) -> "IngestDeliveryClient":
        """Build a client from settings; ingest_url overrides the configured URL."""
        options = {
            'max_attempts': settings.max_attempts,
            'base_delay': settings.retry_base_delay,
            'timeout_seconds': settings.delivery_timeout,
        }
        options.update(kwargs)
        return cls(resolve_ingest_url(ingest_url, settings), **options)

    async def deliver(self, payload: Payload, secret: str, start_time: datetime) -> DeliveryResult:
        """
        Sign and deliver a payload, retrying transient failures.

        Args:
            payload: JSON-serializable mapping or pydantic model
            secret: Shared secret used to sign the body (never sent or logged)
            start_time: Start of the enclosing job, used for job_minutes

        Returns:
            DeliveryResult of the successful attempt

        Raises:
            DeliveryError: If every attempt failed
            TypeError: If the payload is not JSON-serializable
        """
        body = serialize_payload(prepare_payload(payload, start_time))
        retrying = build_retrying(self.max_attempts, self.base_delay, self._sleep)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                async for retry_attempt in retrying:
                    with retry_attempt:
                        attempt = await self._attempt(
                            client, body, secret, retry_attempt.retry_state.attempt_number
                        )
                    if not retry_attempt.retry_state.outcome.failed:
                        retry_attempt.retry_state.set_result(attempt)
            except RetryError as e:
                last = e.last_attempt.result()
                raise DeliveryError(last.number, last.error) from None

        logger.info("Payload delivered", attempts=attempt.number, status_code=attempt.status_code)
        return DeliveryResult.from_attempt(attempt)

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        body: bytes,
        secret: str,
        number: int,
    ) -> Attempt:
        """Run one POST and classify the outcome."""
        logger.info(
            "Sending payload to ingest endpoint",
            attempt=number,
            max_attempts=self.max_attempts
        )

        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            SIGNATURE_HEADER: sign(body, secret),
            'User-Agent': self.user_agent,
        }

        try:
            response = await client.post(self.ingest_url, content=body, headers=headers)
        except httpx.RequestError as e:
            detail = str(e) or type(e).__name__
            return self._failed(
                Attempt(
                    number=number,
                    outcome=AttemptOutcome.NETWORK_ERROR,
                    error=f"Request to ingest endpoint failed: {detail}",
                )
            )

        logger.info("Response received", attempt=number, status_code=response.status_code)
        result_text = response.text

        if not response.is_success:
            snippet = result_text[:ERROR_BODY_LIMIT]
            if len(result_text) > ERROR_BODY_LIMIT:
                snippet += "…"
            return self._failed(
                Attempt(
                    number=number,
                    outcome=AttemptOutcome.HTTP_ERROR,
                    status_code=response.status_code,
                    error=(
                        f"API request failed: {response.status_code} "
                        f"{response.reason_phrase} - {snippet}"
                    ),
                )
            )

        try:
            json.loads(result_text)
        except ValueError:
            return self._failed(
                Attempt(
                    number=number,
                    outcome=AttemptOutcome.MALFORMED_BODY,
                    status_code=response.status_code,
                    error="API responded with non-JSON payload",
                )
            )

        logger.info("API response OK", attempt=number)
        return Attempt(number=number, outcome=AttemptOutcome.SUCCESS, status_code=response.status_code)

    def _failed(self, attempt: Attempt) -> Attempt:
        logger.warning(
            "Delivery attempt failed",
            attempt=attempt.number,
            max_attempts=self.max_attempts,
            outcome=attempt.outcome.value,
            status_code=attempt.status_code,
            error=attempt.error
        )
        return attempt
