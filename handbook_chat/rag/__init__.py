"""RAG: retrieve handbook chunks from ChromaDB and generate answers with OpenAI."""

from .answer import GenerationConfig, Generator
from .context import AssembledContext, RetrievedChunk, Source, assemble_context
from .embedder import Embedder
from .prompt import ConversationEntry, build_conversation, normalize_role
from .retriever import Retrieval, Retriever, VectorStore

__all__ = [
    "AssembledContext",
    "ConversationEntry",
    "Embedder",
    "GenerationConfig",
    "Generator",
    "Retrieval",
    "RetrievedChunk",
    "Retriever",
    "Source",
    "VectorStore",
    "assemble_context",
    "build_conversation",
    "normalize_role",
]
