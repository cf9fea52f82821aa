"""Retrieval backends evaluated by the harness."""

from storage.base import BaseRetriever
from storage.chroma_store import ChromaRetriever

__all__ = ["BaseRetriever", "ChromaRetriever"]
