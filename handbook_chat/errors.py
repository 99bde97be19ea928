"""Errors raised by the retrieval and generation clients."""


class ChatError(Exception):
    """Base class for handbook_chat errors."""


class EmbeddingUnavailable(ChatError):
    """The embedding service returned no vector for the input."""


class GenerationFailed(ChatError):
    """The language-model call failed (transport or service error)."""
