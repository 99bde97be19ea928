"""Generate an answer from the assembled conversation using OpenAI chat."""

from __future__ import annotations

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from handbook_chat.errors import GenerationFailed
from handbook_chat.rag.prompt import ConversationEntry

GENERATION_MODEL = "gpt-4o"

# ConversationEntry roles -> chat completion roles
_WIRE_ROLES = {"user": "user", "model": "assistant"}


@dataclass(frozen=True)
class GenerationConfig:
    model: str = GENERATION_MODEL
    temperature: float = 0.9
    top_k: int | None = 40


def to_messages(conversation: list[ConversationEntry], instruction: str) -> list[dict]:
    """Chat messages: the instruction as the system message, then the conversation in order."""
    messages = []
    if instruction:
        messages.append({"role": "system", "content": instruction})
    messages.extend(
        {"role": _WIRE_ROLES[e.role], "content": e.text} for e in conversation
    )
    return messages


class Generator:
    """
    Chat-completion client. top_k is only sent to OpenAI-compatible servers
    (custom base_url); api.openai.com rejects it.
    """

    def __init__(self, client: AsyncOpenAI, *, send_top_k: bool = False):
        self._client = client
        self._send_top_k = send_top_k

    async def generate_async(
        self,
        conversation: list[ConversationEntry],
        instruction: str,
        config: GenerationConfig,
    ) -> str:
        """Return the model's text. Raises GenerationFailed on any API or transport error."""
        kwargs: dict = {
            "model": config.model,
            "messages": to_messages(conversation, instruction),
            "temperature": config.temperature,
        }
        if self._send_top_k and config.top_k is not None:
            kwargs["extra_body"] = {"top_k": config.top_k}
        try:
            resp = await self._client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise GenerationFailed(f"{config.model}: {type(e).__name__}") from e
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""
