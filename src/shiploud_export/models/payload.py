"""
Module: payload.py
Description: Commit export payload models.

Typed rendering of the payload accepted by the ingest endpoint. The
delivery engine treats payloads as opaque JSON; these models are the
caller-side helpers that shape raw push commits into that contract.

Key Components:
- CommitAuthor, FileChanges, Commit: Per-commit records
- ExportPayload: Top-level payload (repo, owner, branch, commits)
- format_commit(): Shape one raw commit, or None when malformed
- build_export_payload(): Shape a list of raw commits

Dependencies: pydantic, typing, logger
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.logger import get_logger

logger = get_logger(__name__)

# Commit messages longer than this are cut before handoff
MAX_COMMIT_MESSAGE_LENGTH = 10000


class CommitAuthor(BaseModel):
    """Commit author identity."""

    name: str = Field(..., description="Author display name")
    email: Optional[str] = Field(default=None, description="Author email")


class FileChanges(BaseModel):
    """
    File paths touched by a commit, grouped by change type.

    total_changes is derived from the path lists when not supplied.
    """

    added: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    total_changes: int = Field(default=0, ge=0)

    @model_validator(mode='before')
    @classmethod
    def fill_total_changes(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get('total_changes') is None:
            data = dict(data)
            data['total_changes'] = sum(
                len(data.get(key) or []) for key in ('added', 'modified', 'removed')
            )
        return data


class Commit(BaseModel):
    """
    A single commit as sent to the ingest endpoint.

    Attributes:
        id: Commit SHA
        message: Commit message, truncated to MAX_COMMIT_MESSAGE_LENGTH
        author: Commit author
        timestamp: Commit timestamp as reported by the push event
        url: Browser URL of the commit
        additions: Lines added, when known
        deletions: Lines deleted, when known
        files: Added/modified/removed paths
    """

    id: str = Field(..., min_length=1)
    message: str
    author: CommitAuthor
    timestamp: Optional[str] = None
    url: str
    additions: Optional[int] = Field(default=None, ge=0)
    deletions: Optional[int] = Field(default=None, ge=0)
    files: FileChanges = Field(default_factory=FileChanges)

    @field_validator('message')
    @classmethod
    def truncate_message(cls, v: str) -> str:
        return v[:MAX_COMMIT_MESSAGE_LENGTH]


class ExportPayload(BaseModel):
    """Top-level export payload for one push."""

    repo: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)
    branch: Optional[str] = None
    commits: List[Commit] = Field(default_factory=list)

    def to_json_dict(self) -> Dict[str, Any]:
        """Dump to plain JSON types, omitting unknown optional values."""
        return self.model_dump(mode='json', exclude_none=True)


def format_commit(
    raw: Mapping[str, Any],
    owner: str,
    repo: str,
    files: Optional[FileChanges] = None,
    additions: Optional[int] = None,
    deletions: Optional[int] = None,
) -> Optional[Commit]:
    """
    Shape a raw push-event commit into a Commit.

    Args:
        raw: Commit record from the push event (id, message, author, timestamp)
        owner: Repository owner
        repo: Repository name
        files: File changes resolved by the caller, if any
        additions: Lines added, if known
        deletions: Lines deleted, if known

    Returns:
        Commit, or None if the raw record lacks an id, message or author
    """
    if not isinstance(raw, Mapping) or not raw.get('id') or not raw.get('message'):
        logger.warning("Skipping malformed commit", commit=raw)
        return None

    author = raw.get('author')
    if not isinstance(author, Mapping) or not author:
        logger.warning("Skipping malformed commit", commit=raw)
        return None

    message = raw['message']
    if not isinstance(message, str):
        message = str(message)

    return Commit(
        id=raw['id'],
        message=message,
        author=CommitAuthor(name=author.get('name') or '', email=author.get('email')),
        timestamp=raw.get('timestamp'),
        url=f"https://github.com/{owner}/{repo}/commit/{raw['id']}",
        additions=additions,
        deletions=deletions,
        files=files or FileChanges(),
    )


def build_export_payload(
    owner: str,
    repo: str,
    raw_commits: Sequence[Mapping[str, Any]],
    branch: Optional[str] = None,
    file_changes: Optional[Mapping[str, FileChanges]] = None,
) -> ExportPayload:
    """
    Build an ExportPayload from raw push commits, dropping malformed ones.

    Args:
        owner: Repository owner
        repo: Repository name
        raw_commits: Commit records from the push event
        branch: Branch name, if known
        file_changes: File changes keyed by commit id

    Returns:
        ExportPayload (possibly with an empty commit list)
    """
    file_changes = file_changes or {}
    commits = []
    for raw in raw_commits:
        commit_id = raw.get('id') if isinstance(raw, Mapping) else None
        commit = format_commit(raw, owner, repo, files=file_changes.get(commit_id))
        if commit is not None:
            commits.append(commit)

    if len(commits) != len(raw_commits):
        logger.warning(
            "Filtered out malformed commits",
            filtered=len(raw_commits) - len(commits),
            kept=len(commits)
        )

    return ExportPayload(repo=repo, owner=owner, branch=branch, commits=commits)
