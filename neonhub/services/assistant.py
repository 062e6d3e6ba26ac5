"""Co-Pilot assistant — validates chat transcripts and forwards them to the AI gateway.

The gateway speaks the OpenAI chat-completions protocol. The system preamble
is fixed server-side; callers only supply user/assistant turns.
"""

from __future__ import annotations

import httpx
import structlog

from neonhub.config import settings
from neonhub.errors import ConfigurationError, InvalidInput, RateLimitExceeded, UpstreamError

logger = structlog.get_logger()

MAX_MESSAGES = 50
MAX_CONTENT_CHARS = 10000
ALLOWED_ROLES = ("user", "assistant")
NO_RESPONSE = "No response generated"

SYSTEM_PROMPT = """You are Co-Pilot, an AI coding assistant for Neon-Hub, a neon-themed repository management platform.

Your role is to help developers with:
- Code explanations and debugging
- Git operations and best practices
- Repository management
- Programming questions across all languages
- Architecture and design patterns

Be concise, technical, and helpful. Use code examples when appropriate. Match the cyberpunk/neon aesthetic in your tone - be futuristic but professional."""


def validate_messages(messages) -> list[dict]:
    """Check the transcript shape. Raises InvalidInput naming the first bad entry."""
    if not isinstance(messages, list):
        raise InvalidInput("Messages must be an array")
    if not messages:
        raise InvalidInput("Messages array cannot be empty")
    if len(messages) > MAX_MESSAGES:
        raise InvalidInput(f"Too many messages (max {MAX_MESSAGES})")

    for i, msg in enumerate(messages):
        if not isinstance(msg, dict):
            raise InvalidInput(f"Invalid message at index {i}")
        if msg.get("role") not in ALLOWED_ROLES:
            raise InvalidInput(f"Invalid role at index {i}")
        if not isinstance(msg.get("content"), str):
            raise InvalidInput(f"Content must be a string at index {i}")
        if len(msg["content"]) > MAX_CONTENT_CHARS:
            raise InvalidInput(f"Message content too long at index {i} (max {MAX_CONTENT_CHARS} chars)")

    return [{"role": m["role"], "content": m["content"]} for m in messages]


class AssistantGateway:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.base_url = (base_url or settings.AI_GATEWAY_URL).rstrip("/")
        self.model = model or settings.AI_GATEWAY_MODEL
        self.transport = transport

    async def complete(self, messages: list[dict]) -> str:
        """Send the transcript behind the system preamble and return the reply text."""
        if not self.api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": SYSTEM_PROMPT}, *messages],
        }
        async with httpx.AsyncClient(timeout=60.0, transport=self.transport) as client:
            try:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            except httpx.RequestError as e:
                logger.error("ai_gateway_unreachable", error=type(e).__name__)
                raise UpstreamError("Assistant is unavailable") from e

        if resp.status_code == 429:
            logger.warning("ai_gateway_rate_limited")
            raise RateLimitExceeded(message="Rate limit exceeded. Please try again in a moment.")
        if resp.is_error:
            logger.error("ai_gateway_error", status=resp.status_code, body=resp.text[:500])
            raise UpstreamError("Assistant is unavailable")

        data = resp.json()
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content")
        return content or NO_RESPONSE
