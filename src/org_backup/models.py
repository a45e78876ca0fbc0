"""Typed views over the GitHub REST payloads the backup consumes.

Only the fields written to disk or needed to drive cloning are kept. Optional
parts of an issue (labels, closing actor, body) are ``None`` when absent so the
archiver can branch on presence alone.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="Login of the owning account.")
    name: str
    ssh_url: str
    organization: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_api(cls, payload: Dict[str, Any], organization: str) -> "Repository":
        return cls(
            owner=payload["owner"]["login"],
            name=payload["name"],
            ssh_url=payload["ssh_url"],
            organization=organization,
        )


class IssueClosure(BaseModel):
    model_config = ConfigDict(frozen=True)

    closed_by: str
    closed_at: Optional[datetime] = None


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    created_at: datetime
    author: str
    state: str
    labels: Optional[List[str]] = None
    closure: Optional[IssueClosure] = None
    body: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Issue":
        labels = [label["name"] for label in payload.get("labels") or []]
        closer = payload.get("closed_by")
        closure = None
        # a closed issue without a recorded actor gets no closing lines
        if closer:
            closure = IssueClosure(closed_by=closer["login"], closed_at=payload.get("closed_at"))
        return cls(
            number=payload["number"],
            title=payload["title"],
            created_at=payload["created_at"],
            author=payload["user"]["login"],
            state=payload["state"],
            labels=labels or None,
            closure=closure,
            body=payload.get("body"),
        )


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: str
    created_at: datetime
    body: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Comment":
        return cls(
            author=payload["user"]["login"],
            created_at=payload["created_at"],
            body=payload.get("body") or "",
        )
