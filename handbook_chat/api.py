"""FastAPI app: chat over the Research Handbook on Destructive Leadership (RAG)."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict
from functools import lru_cache
from pathlib import Path
from typing import Annotated, NamedTuple

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from handbook_chat.config import Settings
from handbook_chat.errors import GenerationFailed
from handbook_chat.log import get_logger, set_level
from handbook_chat.rag.answer import GenerationConfig, Generator
from handbook_chat.rag.context import assemble_context
from handbook_chat.rag.embedder import Embedder
from handbook_chat.rag.prompt import build_conversation
from handbook_chat.rag.retriever import Retriever, VectorStore

logger = get_logger(__name__)

# Project root (parent of handbook_chat/)
ROOT = Path(__file__).resolve().parent.parent
STATIC_INDEX = ROOT / "static" / "index.html"

MESSAGE_REQUIRED = "Message is required"
INVALID_BODY = "Invalid request body"
GENERATION_FAILED = "Failed to generate response"


class ChatDeps(NamedTuple):
    retriever: Retriever
    generator: Generator
    generation: GenerationConfig
    instruction: str
    top_k: int


def _create_deps(settings: Settings) -> ChatDeps:
    """Build the long-lived service handles. Nothing here touches the network."""
    openai_client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )
    store = VectorStore(
        host=settings.chroma_host,
        api_key=settings.chroma_api_key,
        collection=settings.chroma_collection,
        tenant=settings.chroma_tenant,
        database=settings.chroma_database,
    )
    embedder = Embedder(openai_client, model=settings.embedding_model)
    return ChatDeps(
        retriever=Retriever(store=store, embedder=embedder),
        generator=Generator(openai_client, send_top_k=settings.openai_base_url is not None),
        generation=GenerationConfig(
            model=settings.generation_model,
            temperature=settings.temperature,
            top_k=settings.sampling_top_k,
        ),
        instruction=settings.system_instruction,
        top_k=settings.retrieval_top_k,
    )


@lru_cache
def get_settings() -> Settings:
    """Cached so .env is read once."""
    return Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and create service handles at startup; refuse to start without them."""
    try:
        settings = get_settings()
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]).upper() for err in e.errors())
        logger.error("Invalid configuration, not starting: %s", missing)
        raise
    set_level(settings.log_level)
    app.state.deps = _create_deps(settings)
    logger.info(
        "Ready: collection=%s generation_model=%s retrieval_top_k=%d",
        settings.chroma_collection,
        settings.generation_model,
        settings.retrieval_top_k,
    )
    if settings.openai_base_url is None:
        logger.info(
            "SAMPLING_TOP_K=%d not sent: the hosted OpenAI API has no top_k (set OPENAI_BASE_URL for compatible servers)",
            settings.sampling_top_k,
        )
    yield
    app.state.deps = None


app = FastAPI(
    title="Handbook Chat API",
    description="Ask questions about the Research Handbook on Destructive Leadership (RAG).",
    version="0.1.0",
    lifespan=lifespan,
)


def get_deps(request: Request) -> ChatDeps | None:
    """Handles created by the lifespan; None when it has not run (e.g. app mounted without startup)."""
    return getattr(request.app.state, "deps", None)


class HistoryTurn(BaseModel):
    role: str | None = None
    content: str | None = None


class ChatRequest(BaseModel):
    message: str | None = None
    history: list[HistoryTurn] | None = None

    @property
    def is_blank(self) -> bool:
        return not self.message or not self.message.strip()


class SourceOut(BaseModel):
    chapter_num: int | None = None
    chapter_title: str | None = None
    page_num: int | None = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    has_context: bool = Field(alias="hasContext")
    sources: list[SourceOut]


class ErrorResponse(BaseModel):
    error: str


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _is_missing_message(err: dict) -> bool:
    loc = tuple(err.get("loc", ()))
    return err.get("type") == "missing" and loc in (("body",), ("body", "message"))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a client error (400), not FastAPI's default 422."""
    if any(_is_missing_message(err) for err in exc.errors()):
        return _error(400, MESSAGE_REQUIRED)
    logger.info("Rejected malformed request to %s: %d error(s)", request.url.path, len(exc.errors()))
    return _error(400, INVALID_BODY)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.get("/", response_class=HTMLResponse)
def root():
    """Serve the chat UI."""
    if STATIC_INDEX.exists():
        return FileResponse(STATIC_INDEX)
    return HTMLResponse(
        "<p>Handbook Chat API. <a href='/docs'>Docs</a> | <a href='/health'>Health</a></p>",
        status_code=200,
    )


@app.get("/api")
def api_info():
    return {
        "message": "Handbook Chat API",
        "docs": "/docs",
        "health": "/health",
        "chat": "POST /api/chat with {\"message\": \"Your question?\", \"history\": []}",
    }


@app.get("/health")
async def health(deps: Annotated[ChatDeps | None, Depends(get_deps)]):
    """Health check: verifies the vector collection is reachable."""
    if deps is None:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "reason": "not configured"},
        )
    store = deps.retriever.store
    try:
        count = await asyncio.to_thread(store.count)
    except Exception as e:
        logger.warning("Health check failed: %s: %s", type(e).__name__, e)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "reason": type(e).__name__},
        )
    return {"status": "ok", "collection": store.collection_name, "chunks": count}


@app.post(
    "/api/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    body: ChatRequest,
    deps: Annotated[ChatDeps | None, Depends(get_deps)],
):
    """Answer a question with retrieved handbook context and chapter citations."""
    if body.is_blank:
        return _error(400, MESSAGE_REQUIRED)
    if deps is None:
        logger.error("Chat requested before startup created service handles")
        return _error(500, GENERATION_FAILED)

    try:
        retrieval = await deps.retriever.retrieve_async(body.message, n=deps.top_k)
        if retrieval.degraded:
            logger.warning("Answering without context: %s", retrieval.reason)
        assembled = assemble_context(retrieval.chunks)
        conversation = build_conversation(body.history or [], body.message, assembled.context)
        text = await deps.generator.generate_async(conversation, deps.instruction, deps.generation)
    except GenerationFailed:
        logger.exception("Generation failed")
        return _error(500, GENERATION_FAILED)
    except Exception:
        logger.exception("Unexpected error in chat")
        return _error(500, GENERATION_FAILED)

    return ChatResponse(
        response=text,
        has_context=assembled.has_context,
        sources=[SourceOut(**asdict(s)) for s in assembled.sources],
    )
