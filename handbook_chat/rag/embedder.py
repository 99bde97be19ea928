"""OpenAI embeddings wrapper for query text."""

from __future__ import annotations

from openai import AsyncOpenAI

from handbook_chat.errors import EmbeddingUnavailable

EMBEDDING_MODEL = "text-embedding-3-small"
MAX_INPUT_CHARS = 8000


class Embedder:
    """
    Embed user questions with the model the collection was built with.
    Queries go in as plain text; no task-type hint is sent.
    """

    def __init__(self, client: AsyncOpenAI, model: str = EMBEDDING_MODEL):
        self._client = client
        self.model = model

    async def embed_async(self, text: str) -> list[float]:
        """Embedding for text, truncated to ~8K chars. Raises EmbeddingUnavailable on an empty result."""
        if len(text) > MAX_INPUT_CHARS:
            text = text[:MAX_INPUT_CHARS]
        resp = await self._client.embeddings.create(
            model=self.model,
            input=text,
        )
        if not resp.data or not resp.data[0].embedding:
            raise EmbeddingUnavailable(f"{self.model} returned no embedding")
        return resp.data[0].embedding
