"""Configuration management using Pydantic Settings.

This module provides centralized configuration for the retrieval evaluation
harness, loading values from environment variables and an optional .env file.
Per-suite run configuration (thresholds, result caps, timeouts) lives in the
suite definition itself, not here.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Evaluation run
    suite_path: Path = Field(
        default=Path("eval/retrieval-tests.yaml"),
        description="Default retrieval test suite definition",
    )
    output_dir: Path = Field(
        default=Path("eval/results"),
        description="Directory for evaluation reports",
    )
    required_pass_rate: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Overall pass rate below which the run exits non-zero",
    )

    # Knowledge base store (ChromaDB)
    chroma_host: str = Field(default="localhost", description="ChromaDB host")
    chroma_port: int = Field(default=8000, description="ChromaDB port")
    chroma_collection_name: str = Field(
        default="knowledge_base",
        description="ChromaDB collection holding knowledge base chunks",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path",
    )

    @property
    def chroma_url(self) -> str:
        """Get ChromaDB connection URL."""
        return f"http://{self.chroma_host}:{self.chroma_port}"

    def get_retriever_config(self) -> dict[str, Any]:
        """Get knowledge base retriever configuration.

        Returns:
            Configuration dictionary for ChromaRetriever
        """
        return {
            "host": self.chroma_host,
            "port": self.chroma_port,
            "collection_name": self.chroma_collection_name,
        }


# Global settings instance
settings = Settings()
