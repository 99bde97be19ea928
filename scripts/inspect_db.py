#!/usr/bin/env python3
"""Inspect the handbook collection: count, sample chunks, test queries."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from openai import AsyncOpenAI
from pydantic import ValidationError

from handbook_chat.config import Settings
from handbook_chat.rag.context import assemble_context
from handbook_chat.rag.embedder import Embedder
from handbook_chat.rag.retriever import Retriever, VectorStore


def _location(chunk) -> str:
    page = f", p. {chunk.page_num}" if chunk.page_num else ""
    return f"Chapter {chunk.chapter_num}: {chunk.chapter_title or '(untitled)'}{page}"


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect the handbook ChromaDB collection")
    parser.add_argument(
        "--query",
        type=str,
        help="Test query to search for similar chunks",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=5,
        help="Number of results to return for queries",
    )
    args = parser.parse_args()

    try:
        settings = Settings()
    except ValidationError as e:
        print("Configuration incomplete:")
        for err in e.errors():
            print(f"  {str(err['loc'][0]).upper()}: {err['msg']}")
        sys.exit(1)

    store = VectorStore(
        host=settings.chroma_host,
        api_key=settings.chroma_api_key,
        collection=settings.chroma_collection,
        tenant=settings.chroma_tenant,
        database=settings.chroma_database,
    )

    try:
        count = store.count()
    except Exception as e:
        print(f"Collection '{settings.chroma_collection}' not reachable: {e}")
        sys.exit(1)

    print(f"Collection: {settings.chroma_collection}")
    print(f"Total chunks: {count}")

    if count == 0:
        print("Collection is empty.")
        sys.exit(0)

    if not args.query:
        return

    print(f"\n--- Query: '{args.query}' ---")
    client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
    retriever = Retriever(store=store, embedder=Embedder(client, model=settings.embedding_model))
    retrieval = asyncio.run(retriever.retrieve_async(args.query, n=args.limit))

    if retrieval.degraded:
        print(f"Retrieval degraded: {retrieval.reason}")
        sys.exit(1)

    for i, chunk in enumerate(retrieval.chunks, 1):
        print(f"\n{i}. {_location(chunk)}")
        print(f"   Content: {chunk.content[:200]}...")

    assembled = assemble_context(retrieval.chunks)
    print(f"\nDistinct chapters cited: {len(assembled.sources)}")


if __name__ == "__main__":
    main()
