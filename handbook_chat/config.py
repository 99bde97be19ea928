"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from handbook_chat.rag.prompt import DEFAULT_SYSTEM_INSTRUCTION


class Settings(BaseSettings):
    """Loaded from .env. Validates at startup; required fields have no default."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: str
    openai_base_url: str | None = None

    chroma_host: str
    chroma_api_key: str
    chroma_collection: str
    chroma_tenant: str = "default_tenant"
    chroma_database: str = "default_database"

    embedding_model: str = "text-embedding-3-small"
    generation_model: str = "gpt-4o"
    temperature: float = 0.9
    sampling_top_k: int = 40
    retrieval_top_k: int = 20
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION

    log_level: str = "INFO"

    @field_validator("openai_api_key", "chroma_host", "chroma_api_key", "chroma_collection")
    @classmethod
    def required_not_blank(cls, v: str) -> str:
        s = v.strip() if v else ""
        if not s:
            raise ValueError("must be set")
        return s

    @field_validator("openai_base_url")
    @classmethod
    def blank_base_url_is_none(cls, v: str | None) -> str | None:
        return v.strip() or None if v else None

    @field_validator("retrieval_top_k")
    @classmethod
    def clamp_retrieval_top_k(cls, v: int) -> int:
        return max(1, min(100, v))
