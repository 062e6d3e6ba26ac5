"""Co-Pilot chat router.

Endpoint:
  POST /api/copilot-chat — forward a validated transcript to the AI gateway
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request

from neonhub.deps import ChatCaller, read_json_body
from neonhub.schemas.chat import ChatResponse
from neonhub.services.assistant import AssistantGateway, validate_messages

logger = structlog.get_logger()

router = APIRouter()


@router.post("/copilot-chat", response_model=ChatResponse)
async def copilot_chat(request: Request, caller: ChatCaller):
    body = await read_json_body(request)
    messages = validate_messages(body.get("messages"))
    logger.info("copilot_chat_request", user_id=str(caller.user_id), messages=len(messages))

    reply = await AssistantGateway().complete(messages)
    return ChatResponse(response=reply)
