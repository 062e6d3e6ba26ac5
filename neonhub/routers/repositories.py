"""Repositories router — the caller's own repository rows.

Endpoint:
  GET /api/repositories — list repositories owned by the caller
"""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import select

from neonhub.deps import DB, GitHubCaller
from neonhub.models.repository import Repository
from neonhub.schemas.repository import RepositoryResponse

router = APIRouter()


@router.get("/repositories", response_model=list[RepositoryResponse])
async def list_repositories(caller: GitHubCaller, db: DB):
    """List the caller's repositories, most recently updated first."""
    result = await db.execute(
        select(Repository)
        .where(Repository.user_id == caller.user_id)
        .order_by(Repository.updated_at.desc())
    )
    return [RepositoryResponse.model_validate(r) for r in result.scalars().all()]
