"""Pydantic schemas for repository listing."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


class RepositoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    visibility: str
    language: str | None = None
    stars_count: int = 0
    forks_count: int = 0
    github_repo_id: str | None = None
    github_full_name: str | None = None
    clone_url: str | None = None
    is_synced: bool = False
    last_synced_at: datetime | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}
