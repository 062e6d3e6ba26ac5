"""Pydantic schemas for the Co-Pilot chat endpoint."""

from pydantic import BaseModel


class ChatResponse(BaseModel):
    response: str
