"""GitHub credential custody.

Only ever used with the service-role session: callers cannot read or write
`profiles.github_access_token` with their own privileges. The plaintext token
exists only in memory for the duration of one request.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog
from cryptography.fernet import InvalidToken
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from neonhub.db.upsert import insert_for
from neonhub.models.profile import Profile
from neonhub.services.token_cipher import TokenCipher

logger = structlog.get_logger()


@dataclass(frozen=True)
class StoredCredential:
    token: str
    github_username: str | None


class CredentialStore:
    def __init__(self, session: AsyncSession, cipher: TokenCipher):
        self.session = session
        self.cipher = cipher

    async def get(self, user_id: uuid.UUID) -> StoredCredential | None:
        """Return the decrypted credential for a user, or None if not linked.

        A stored value that no longer decrypts (rotated key, legacy plaintext)
        counts as not linked, so the caller is asked to reconnect.
        """
        result = await self.session.execute(
            select(Profile.github_access_token, Profile.github_username).where(
                Profile.user_id == user_id
            )
        )
        row = result.one_or_none()
        if row is None or not row.github_access_token:
            return None
        try:
            token = self.cipher.decrypt(row.github_access_token)
        except InvalidToken:
            logger.warning("github_credential_unreadable", user_id=str(user_id))
            return None
        return StoredCredential(token=token, github_username=row.github_username)

    async def save(self, user_id: uuid.UUID, token: str, github_username: str) -> None:
        """Create or overwrite the user's credential.

        Upserts the profile row so a first-time connection works even when the
        signup hook has not created the profile yet.
        """
        stmt = insert_for(self.session, Profile).values(
            id=uuid.uuid4(),
            user_id=user_id,
            github_access_token=self.cipher.encrypt(token),
            github_username=github_username,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Profile.user_id],
            set_={
                "github_access_token": stmt.excluded.github_access_token,
                "github_username": stmt.excluded.github_username,
                "updated_at": func.now(),
            },
        )
        await self.session.execute(stmt)
        await self.session.commit()
        logger.info("github_credential_saved", user_id=str(user_id), github_username=github_username)

    async def clear(self, user_id: uuid.UUID) -> bool:
        """Unlink GitHub. Returns True if a credential was removed."""
        result = await self.session.execute(
            update(Profile)
            .where(Profile.user_id == user_id, Profile.github_access_token.is_not(None))
            .values(github_access_token=None, github_username=None)
        )
        await self.session.commit()
        removed = result.rowcount > 0
        logger.info("github_credential_cleared", user_id=str(user_id), removed=removed)
        return removed
