"""Conflict-safe repository sync.

Turns GitHub repository JSON into `repositories` rows owned by one user.

Ownership guard: a GitHub repository id already stored for a different user is
never written, so one account cannot take over another account's row by
syncing the same id. The guard is a read followed by a write, not a single
statement, so two users syncing the same id at the same instant can both pass
it. The (user_id, github_repo_id) unique constraint still keeps each user's
own row consistent.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from neonhub.db.upsert import insert_for
from neonhub.models.repository import Repository, Visibility

logger = structlog.get_logger()

MAX_REPOS_PER_SYNC = 50

NAME_MAX = 255
DESCRIPTION_MAX = 1000
LANGUAGE_MAX = 50
FULL_NAME_MAX = 255
CLONE_URL_MAX = 500


def _truncate(value, limit: int) -> str | None:
    if not value:
        return None
    return str(value)[:limit]


def _count(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def normalize_repo_id(value) -> str | None:
    """Canonical string form of a GitHub repository id, or None if unusable.

    GitHub ids are positive integers. Whole-number floats (`42.0`) and digit
    strings map to the same key as the integer; bools and anything else do not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    elif isinstance(value, str):
        if not value.isdecimal():
            return None
        value = int(value)
    elif not isinstance(value, int):
        return None
    return str(value) if value > 0 else None


def to_repository_values(repo: dict, github_repo_id: str, user_id: uuid.UUID, synced_at: datetime) -> dict:
    """Map one GitHub repository dict onto `repositories` column values.

    `github_repo_id` is the already-normalized id used for the ownership check.
    """
    return {
        "user_id": user_id,
        "name": str(repo["name"])[:NAME_MAX],
        "description": _truncate(repo.get("description"), DESCRIPTION_MAX),
        "visibility": (Visibility.PRIVATE if repo.get("private") else Visibility.PUBLIC).value,
        "language": _truncate(repo.get("language"), LANGUAGE_MAX),
        "stars_count": _count(repo.get("stargazers_count")),
        "forks_count": _count(repo.get("forks_count")),
        "github_repo_id": github_repo_id,
        "github_full_name": _truncate(repo.get("full_name"), FULL_NAME_MAX),
        "clone_url": _truncate(repo.get("clone_url"), CLONE_URL_MAX),
        "is_synced": True,
        "last_synced_at": synced_at,
    }


class RepositorySyncer:
    """Upserts a user's selected GitHub repositories with the service session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def owned_by_someone_else(self, github_repo_id: str, user_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            select(Repository.user_id).where(Repository.github_repo_id == github_repo_id)
        )
        return any(owner != user_id for owner in result.scalars().all())

    async def upsert(self, values: dict) -> None:
        stmt = insert_for(self.session, Repository).values(id=uuid.uuid4(), **values)
        updatable = {
            key: stmt.excluded[key]
            for key in values
            if key not in ("user_id", "github_repo_id")
        }
        updatable["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=[Repository.user_id, Repository.github_repo_id],
            set_=updatable,
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def sync(self, user_id: uuid.UUID, repos: list) -> int:
        """Sync up to MAX_REPOS_PER_SYNC records in input order.

        Records beyond the ceiling are ignored. Malformed records and records
        owned by another user are skipped without failing the batch. Each
        upsert commits on its own, so an error partway leaves earlier records
        in place.

        Returns:
            Number of records actually written.
        """
        batch = repos[:MAX_REPOS_PER_SYNC]
        if len(repos) > MAX_REPOS_PER_SYNC:
            logger.info("sync_batch_truncated", user_id=str(user_id), received=len(repos))

        synced = 0
        skipped_foreign = 0
        for repo in batch:
            if not isinstance(repo, dict) or not repo.get("name"):
                continue
            github_repo_id = normalize_repo_id(repo.get("id"))
            if github_repo_id is None:
                continue

            if await self.owned_by_someone_else(github_repo_id, user_id):
                logger.info("sync_skipped_foreign_repo", user_id=str(user_id), github_repo_id=github_repo_id)
                skipped_foreign += 1
                continue

            now = datetime.now(timezone.utc)
            await self.upsert(to_repository_values(repo, github_repo_id, user_id, now))
            synced += 1

        logger.info(
            "repos_synced",
            user_id=str(user_id),
            synced=synced,
            skipped_foreign=skipped_foreign,
            considered=len(batch),
        )
        return synced
