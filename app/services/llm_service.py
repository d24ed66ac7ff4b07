import logging
from typing import Protocol, Sequence

from openai import OpenAI, OpenAIError

from app.core.config import Settings
from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    def chat(self, system_prompt: str, messages: Sequence) -> str: ...


def _as_pair(message) -> tuple[str, str]:
    if isinstance(message, dict):
        return message["role"], message["content"]
    return message.role, message.content


class LLMService:
    """Chat completions over the OpenAI API: one system prompt plus the conversation so far."""

    def __init__(self, settings: Settings):
        self.model = settings.openai_model
        self.temperature = settings.openai_temperature
        self.client = None
        if settings.openai_api_key:
            self.client = OpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout_seconds)

    def chat(self, system_prompt: str, messages: Sequence) -> str:
        history = [_as_pair(message) for message in messages]
        if not history:
            raise ValueError("messages must not be empty")
        if history[-1][0] != "user":
            raise ValueError("the last message must come from the user")
        if self.client is None:
            raise UpstreamError("OPENAI_API_KEY is not configured. Set it in the environment or .env file.")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[{"role": "system", "content": system_prompt}]
                + [{"role": role, "content": content} for role, content in history],
            )
        except OpenAIError as exc:
            logger.error("LLM call failed: %s", exc)
            raise UpstreamError("LLM request failed", details=str(exc)) from exc

        return (response.choices[0].message.content or "").strip()
