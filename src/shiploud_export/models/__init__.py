"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains the data models used by the export client:
- ExportPayload / Commit: Payload contract of the ingest endpoint
- Attempt / DeliveryResult: Per-attempt and terminal delivery outcomes
"""

from .delivery import Attempt, AttemptOutcome, DeliveryResult
from .payload import (
    Commit,
    CommitAuthor,
    ExportPayload,
    FileChanges,
    build_export_payload,
    format_commit,
)

__all__ = [
    "Attempt",
    "AttemptOutcome",
    "Commit",
    "CommitAuthor",
    "DeliveryResult",
    "ExportPayload",
    "FileChanges",
    "build_export_payload",
    "format_commit",
]
