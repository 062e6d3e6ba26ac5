"""Authenticated caller, resolved from the bearer JWT."""

from __future__ import annotations

import uuid

from pydantic import BaseModel


class Identity(BaseModel):
    user_id: uuid.UUID
    email: str | None = None
    role: str | None = None
