"""Turn retrieved chunks into a context block and chapter citations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class RetrievedChunk:
    """A chunk of handbook text with its location metadata."""

    content: str
    chapter_num: int | None = None
    chapter_title: str | None = None
    page_num: int | None = None


@dataclass(frozen=True)
class Source:
    """One citation shown under an answer."""

    chapter_num: int | None = None
    chapter_title: str | None = None
    page_num: int | None = None

    @classmethod
    def from_chunk(cls, chunk: RetrievedChunk) -> "Source":
        return cls(
            chapter_num=chunk.chapter_num,
            chapter_title=chunk.chapter_title,
            page_num=chunk.page_num,
        )


@dataclass(frozen=True)
class AssembledContext:
    context: str = ""
    sources: list[Source] = field(default_factory=list)

    @property
    def has_context(self) -> bool:
        return bool(self.context)


def build_context(chunks: Iterable[RetrievedChunk]) -> str:
    """Join non-empty chunk contents, in order, with a blank line between them."""
    return "\n\n".join(c.content for c in chunks if c.content)


def dedupe_sources(sources: Iterable[Source]) -> list[Source]:
    """
    Keep the first citation per chapter number, preserving order.
    Citations without a chapter number are dropped.
    """
    seen: set[int] = set()
    out: list[Source] = []
    for s in sources:
        if s.chapter_num is None or s.chapter_num in seen:
            continue
        seen.add(s.chapter_num)
        out.append(s)
    return out


def assemble_context(chunks: list[RetrievedChunk]) -> AssembledContext:
    return AssembledContext(
        context=build_context(chunks),
        sources=dedupe_sources(Source.from_chunk(c) for c in chunks),
    )
