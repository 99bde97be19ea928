"""Retrieve relevant handbook chunks from a remote ChromaDB collection."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from urllib.parse import urlparse

import chromadb
from openai import OpenAIError

from handbook_chat.errors import EmbeddingUnavailable
from handbook_chat.log import get_logger
from handbook_chat.rag.context import RetrievedChunk
from handbook_chat.rag.embedder import Embedder

logger = get_logger(__name__)

DEFAULT_TOP_K = 20


@dataclass(frozen=True)
class Retrieval:
    """Chunks for one query. degraded=True means embedding or search failed, not that nothing matched."""

    chunks: list[RetrievedChunk] = field(default_factory=list)
    degraded: bool = False
    reason: str = ""

    @classmethod
    def failed(cls, reason: str) -> "Retrieval":
        return cls(degraded=True, reason=reason)


def _as_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _to_chunk(doc: str | None, meta: dict | None) -> RetrievedChunk:
    meta = meta or {}
    title = meta.get("chapter_title")
    return RetrievedChunk(
        content=doc or str(meta.get("content") or ""),
        chapter_num=_as_int(meta.get("chapter_num")),
        chapter_title=str(title) if title is not None else None,
        page_num=_as_int(meta.get("page_num")),
    )


def _split_host(url: str) -> tuple[str, int, bool]:
    """Host, port and TLS flag from e.g. "https://chroma.example.com" or "localhost:8000"."""
    parsed = urlparse(url if "://" in url else f"http://{url}")
    ssl = parsed.scheme == "https"
    port = parsed.port or (443 if ssl else 8000)
    return parsed.hostname or "localhost", port, ssl


class VectorStore:
    """Similarity search against one ChromaDB collection. Client is connected on first use."""

    def __init__(
        self,
        host: str,
        api_key: str,
        collection: str,
        *,
        tenant: str = "default_tenant",
        database: str = "default_database",
    ):
        self._host = host
        self._api_key = api_key
        self._tenant = tenant
        self._database = database
        self.collection_name = collection
        self._collection = None

    def _get_collection(self):
        if self._collection is None:
            hostname, port, ssl = _split_host(self._host)
            client = chromadb.HttpClient(
                host=hostname,
                port=port,
                ssl=ssl,
                headers={"x-chroma-token": self._api_key},
                tenant=self._tenant,
                database=self._database,
            )
            self._collection = client.get_collection(self.collection_name)
        return self._collection

    def count(self) -> int:
        return self._get_collection().count()

    def search(self, vector: list[float], top_k: int = DEFAULT_TOP_K) -> Retrieval:
        """
        Top-k chunks nearest to vector, most similar first.
        Never raises: any failure comes back as a degraded, empty Retrieval.
        """
        try:
            collection = self._get_collection()
            count = collection.count()
            if count == 0:
                return Retrieval()
            results = collection.query(
                query_embeddings=[vector],
                n_results=min(top_k, count),
                include=["documents", "metadatas"],
            )
        except Exception as e:
            logger.warning("Vector search degraded (%s): %s", type(e).__name__, e)
            return Retrieval.failed(f"search: {type(e).__name__}")

        documents = (results.get("documents") or [[]])[0] or []
        metadatas = (results.get("metadatas") or [[]])[0] or []
        return Retrieval(chunks=[_to_chunk(doc, meta) for doc, meta in zip(documents, metadatas)])


class Retriever:
    """Embed a question and fetch its nearest handbook chunks."""

    def __init__(self, store: VectorStore, embedder: Embedder):
        self._store = store
        self._embedder = embedder

    @property
    def store(self) -> VectorStore:
        return self._store

    async def retrieve_async(self, query: str, n: int = DEFAULT_TOP_K) -> Retrieval:
        """Embed query and retrieve top-n chunks. Embedding failure degrades to an empty result."""
        try:
            emb = await self._embedder.embed_async(query)
        except EmbeddingUnavailable as e:
            logger.warning("Embedding unavailable, continuing without context: %s", e)
            return Retrieval.failed("embedding: no vector")
        except OpenAIError as e:
            logger.warning("Embedding request failed (%s): %s", type(e).__name__, e)
            return Retrieval.failed(f"embedding: {type(e).__name__}")

        retrieval = await asyncio.to_thread(self._store.search, emb, n)
        if not retrieval.degraded:
            logger.debug("Retrieved %d chunks for query", len(retrieval.chunks))
        return retrieval
