"""
Module: delivery.py
Description: Delivery attempt and result models.

Each HTTP exchange with the ingest endpoint is classified into an
immutable Attempt value. The retry loop decides what to do next by
inspecting the attempt outcome instead of catching exceptions.

Key Components:
- AttemptOutcome: Enum of per-attempt outcomes
- Attempt: Frozen record of a single delivery attempt
- DeliveryResult: Outcome of a successful delivery call

Dependencies: pydantic, enum, typing
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AttemptOutcome(str, Enum):
    """Classification of a single delivery attempt."""

    SUCCESS = "success"
    NETWORK_ERROR = "network_error"
    HTTP_ERROR = "http_error"
    MALFORMED_BODY = "malformed_body"


class Attempt(BaseModel):
    """
    Immutable record of one delivery attempt.

    Attributes:
        number: 1-based attempt number
        outcome: How the attempt ended
        status_code: HTTP status, when a response was received
        error: Human-readable failure detail (None on success)
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., ge=1, description="1-based attempt number")
    outcome: AttemptOutcome = Field(..., description="Attempt classification")
    status_code: Optional[int] = Field(default=None, description="HTTP status code")
    error: Optional[str] = Field(default=None, description="Failure detail")

    @property
    def succeeded(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS

    @property
    def retryable(self) -> bool:
        """Every non-success outcome is retried until attempts run out."""
        return not self.succeeded


class DeliveryResult(BaseModel):
    """
    Result of a successful delivery call.

    Failed deliveries never produce a result; they raise DeliveryError.

    Attributes:
        attempts: Number of attempts it took, including the successful one
        status_code: HTTP status of the successful response
    """

    model_config = ConfigDict(frozen=True)

    attempts: int = Field(..., ge=1)
    status_code: Optional[int] = None

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> "DeliveryResult":
        """
        Build the result from the successful attempt.

        Raises:
            ValueError: If the attempt did not succeed
        """
        if not attempt.succeeded:
            raise ValueError("DeliveryResult is only built from a successful attempt")
        return cls(attempts=attempt.number, status_code=attempt.status_code)
