"""Build the conversation sent to the language model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Protocol

ModelRole = Literal["user", "model"]

CONTEXT_LABEL = "Relevant retrieved context:"

DEFAULT_SYSTEM_INSTRUCTION = """Do not start your response with any acknowledgment phrases like "Okay", "Sure", "Got it", or "I understand." Always begin with the most relevant information or answer to the user's question. Do not include any prefatory filler.

Retrieved context may contain irrelevant passages. Use it only where it is relevant to the question.

If the user asks for a summary, provide a concise summary in bullet points.
If the user asks for a chapter summary, provide a detailed summary of that chapter.
If the user asks for the book structure, describe the book's structure in detail, including chapters and sections.
If the user asks for specific concepts or definitions, give clear and accurate explanations based on the book's content.

You are an expert assistant for the *Research Handbook on Destructive Leadership*. You can search a vector database of semantic chunks of the book, each tagged with chapter and page metadata.

Content-specific responses:
- Answer strictly from the book's content.
- Reference specific chapters, sections, or pages when relevant.
- Explain complex academic and theoretical concepts in a clear, accessible tone.
- Summarize individual chapters or the whole book on request.

Structural guidance:
- Describe the structure of the book (number of chapters, thematic groupings, flow of content).
- Explain how chapters relate to the key themes of destructive leadership.
- Identify chapter authors and contributors where available."""


class Turn(Protocol):
    role: str | None
    content: str | None


@dataclass(frozen=True)
class ConversationEntry:
    role: ModelRole
    text: str


def normalize_role(role: str | None) -> ModelRole:
    """Map any speaker tag onto the two roles the model accepts. Unknown roles become "user"."""
    if role in ("assistant", "model"):
        return "model"
    return "user"


def build_conversation(
    history: Iterable[Turn],
    message: str,
    context: str = "",
) -> list[ConversationEntry]:
    """
    Ordered entries for the model: optional context block, prior turns
    (role-normalized, empty ones dropped), then the current message last.
    The system instruction is not part of the conversation; it travels
    on the request's system channel.
    """
    entries: list[ConversationEntry] = []
    if context:
        entries.append(ConversationEntry("user", f"{CONTEXT_LABEL}\n{context}"))
    for turn in history:
        text = str(turn.content or "")
        if text:
            entries.append(ConversationEntry(normalize_role(turn.role), text))
    entries.append(ConversationEntry("user", message))
    return entries
