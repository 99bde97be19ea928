"""Shared fixtures: fake retrieval/generation handles injected through get_deps."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from handbook_chat.api import ChatDeps, app, get_deps
from handbook_chat.errors import GenerationFailed
from handbook_chat.rag.answer import GenerationConfig
from handbook_chat.rag.context import RetrievedChunk
from handbook_chat.rag.retriever import Retrieval


class FakeStore:
    collection_name = "handbook"

    def __init__(self, count: int = 3, error: Exception | None = None):
        self._count = count
        self._error = error

    def count(self) -> int:
        if self._error:
            raise self._error
        return self._count


class FakeRetriever:
    def __init__(self, retrieval: Retrieval | None = None):
        self.retrieval = retrieval or Retrieval()
        self.calls: list[tuple[str, int]] = []
        self.store = FakeStore()

    async def retrieve_async(self, query: str, n: int = 20) -> Retrieval:
        self.calls.append((query, n))
        return self.retrieval


class FakeGenerator:
    def __init__(self, text: str = "An answer.", fail: bool = False):
        self.text = text
        self.fail = fail
        self.calls: list[tuple] = []

    async def generate_async(self, conversation, instruction, config) -> str:
        self.calls.append((conversation, instruction, config))
        if self.fail:
            raise GenerationFailed("gpt-4o: APIConnectionError")
        return self.text


def chunk(content: str, chapter: int | None = None, title: str | None = None, page: int | None = None):
    return RetrievedChunk(content=content, chapter_num=chapter, chapter_title=title, page_num=page)


@pytest.fixture
def retriever():
    return FakeRetriever()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def deps(retriever, generator):
    return ChatDeps(
        retriever=retriever,
        generator=generator,
        generation=GenerationConfig(),
        instruction="Answer from the handbook.",
        top_k=20,
    )


@pytest.fixture
def client(deps):
    """TestClient with fake handles; lifespan is not run so no configuration is needed."""
    app.dependency_overrides[get_deps] = lambda: deps
    yield TestClient(app)
    app.dependency_overrides.clear()
