"""Pydantic schemas for the GitHub proxy endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class VerifyResponse(BaseModel):
    success: bool = True
    username: str


class FetchReposResponse(BaseModel):
    repos: list[dict]
    connected: bool = True


class SyncReposResponse(BaseModel):
    success: bool = True
    synced_count: int = Field(serialization_alias="syncedCount")


class ConnectionStatus(BaseModel):
    connected: bool
    username: str | None = None
