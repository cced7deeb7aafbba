"""Data models for issues, pull requests and comments fetched from the
platform API (Pydantic)."""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class AgentKind(str, Enum):
    """External coding agent selected for a run."""

    CLAUDE = "claude"
    CODEX = "codex"


class Issue(BaseModel):
    """Git hosting platform issue."""

    number: int
    title: str = ""
    body: str = ""
    author: str = ""


class PR(BaseModel):
    """Pull request."""

    number: int
    title: str = ""
    body: str = ""
    author: str = ""
    head_branch: str = ""
    base_branch: str = ""
    html_url: str | None = None


class Comment(BaseModel):
    """Comment on an issue or PR conversation."""

    id: int
    body: str = ""
    author: str = ""
    created_at: datetime | None = None


class ReviewComment(BaseModel):
    """Line-level (or file-level) comment on a pull request review."""

    id: int
    body: str = ""
    author: str = ""
    path: str = ""
    line: int | None = None
    in_reply_to_id: int | None = None
    created_at: datetime | None = None


class HistoryItem(BaseModel):
    """One piece of conversation history: a body and who wrote it."""

    body: str = ""
    author: str = ""


class ContentsData(BaseModel):
    """Parent issue/PR content plus its conversation, oldest first."""

    content: HistoryItem
    title: str = ""
    comments: List[HistoryItem] = Field(default_factory=list)
