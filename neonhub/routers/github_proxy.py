"""GitHub proxy router — token custody and repository sync.

Endpoints:
  POST   /api/github-proxy         — action dispatcher: verify | fetch_repos | sync_repos
  GET    /api/github/connection    — is a GitHub account linked (never returns the token)
  DELETE /api/github/connection    — unlink GitHub, dropping the stored token

Gate order for every call: bearer auth → rate limit → action validation.
The GitHub token lives only server-side; it is written and read through the
service-role session and never echoed to the client.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request

from neonhub.deps import GitHubCaller, ServiceDB, read_json_body
from neonhub.errors import (
    InvalidAction,
    InvalidCredential,
    InvalidInput,
    InvalidTokenFormat,
    NotConnected,
    UpstreamError,
)
from neonhub.schemas.github import (
    ConnectionStatus,
    FetchReposResponse,
    SyncReposResponse,
    VerifyResponse,
)
from neonhub.schemas.identity import Identity
from neonhub.services.credential_store import CredentialStore
from neonhub.services.github_client import GitHubClient
from neonhub.services.repo_sync import RepositorySyncer
from neonhub.services.token_cipher import TokenCipher

logger = structlog.get_logger()

router = APIRouter()

GITHUB_TOKEN_PREFIXES = ("ghp_",)
VALID_ACTIONS = ("verify", "fetch_repos", "sync_repos")
DEPRECATED_ACTIONS = {"save_token": "Use verify action instead"}


async def verify_token(caller: Identity, store: CredentialStore, token) -> VerifyResponse:
    """Check a personal access token against GitHub and store it on success."""
    if not token or not isinstance(token, str) or not token.startswith(GITHUB_TOKEN_PREFIXES):
        raise InvalidTokenFormat()

    try:
        github_user = await GitHubClient(token).get_authenticated_user()
    except UpstreamError as e:
        logger.warning("github_token_verification_failed", user_id=str(caller.user_id), status=e.status_code)
        raise InvalidCredential() from e

    username = github_user.get("login") if isinstance(github_user, dict) else None
    if not isinstance(username, str) or not username:
        logger.warning("github_user_missing_login", user_id=str(caller.user_id))
        raise InvalidCredential()

    await store.save(caller.user_id, token, username)
    logger.info("github_connected", user_id=str(caller.user_id), github_username=username)
    return VerifyResponse(username=username)


async def fetch_repos(caller: Identity, store: CredentialStore) -> FetchReposResponse:
    """List the caller's GitHub repositories using the stored token."""
    credential = await store.get(caller.user_id)
    if credential is None:
        raise NotConnected(connected=False)

    try:
        repos = await GitHubClient(credential.token).list_repos()
    except UpstreamError as e:
        logger.error("github_fetch_repos_failed", user_id=str(caller.user_id), status=e.status_code)
        raise UpstreamError("Failed to fetch repositories", status_code=e.status_code) from e

    return FetchReposResponse(repos=repos)


async def sync_repos(
    caller: Identity, store: CredentialStore, syncer: RepositorySyncer, repo_data
) -> SyncReposResponse:
    """Persist the caller's selected repositories (first 50 only)."""
    if await store.get(caller.user_id) is None:
        raise NotConnected()
    if not isinstance(repo_data, list):
        raise InvalidInput("Invalid repository data")

    synced = await syncer.sync(caller.user_id, repo_data)
    return SyncReposResponse(synced_count=synced)


@router.post("/github-proxy")
async def github_proxy(request: Request, caller: GitHubCaller, db: ServiceDB):
    """Dispatch one GitHub proxy action for the authenticated caller."""
    body = await read_json_body(request)
    action = body.get("action")

    if not isinstance(action, str):
        raise InvalidAction()
    if action in DEPRECATED_ACTIONS:
        raise InvalidInput(DEPRECATED_ACTIONS[action])
    if action not in VALID_ACTIONS:
        raise InvalidAction()

    logger.info("github_proxy_action", action=action, user_id=str(caller.user_id))

    store = CredentialStore(db, TokenCipher.from_settings())

    if action == "verify":
        return await verify_token(caller, store, body.get("token"))
    if action == "fetch_repos":
        return await fetch_repos(caller, store)
    return await sync_repos(caller, store, RepositorySyncer(db), body.get("repoData"))


@router.get("/github/connection", response_model=ConnectionStatus)
async def get_connection(caller: GitHubCaller, db: ServiceDB):
    """Report whether the caller has linked a GitHub account."""
    credential = await CredentialStore(db, TokenCipher.from_settings()).get(caller.user_id)
    if credential is None:
        return ConnectionStatus(connected=False)
    return ConnectionStatus(connected=True, username=credential.github_username)


@router.delete("/github/connection")
async def delete_connection(caller: GitHubCaller, db: ServiceDB):
    """Unlink GitHub: drop the stored token and cached username."""
    removed = await CredentialStore(db, TokenCipher.from_settings()).clear(caller.user_id)
    return {"success": True, "removed": removed}
