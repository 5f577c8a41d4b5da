"""
Module: exceptions.py
Description: Exception types raised by the export client.
"""

from typing import Optional


class ExportError(Exception):
    """Base class for export client errors."""


class DeliveryError(ExportError):
    """
    Raised when every delivery attempt failed.

    Attributes:
        attempts: Total number of attempts made
        last_error: Failure detail of the final attempt
    """

    def __init__(self, attempts: int, last_error: Optional[str]):
        self.attempts = attempts
        self.last_error = last_error or "Unknown error"
        super().__init__(f"Failed after {attempts} attempts. Last error: {self.last_error}")
