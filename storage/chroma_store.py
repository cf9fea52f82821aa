"""ChromaDB-backed knowledge base retriever.

This module queries an existing ChromaDB collection of knowledge base chunks.
Ingestion and embedding are owned by the knowledge base pipeline; queries are
sent as text and embedded by the collection's own embedding function.

The chromadb client is synchronous, so every call that reaches the server runs
in a worker thread to keep the event loop free to enforce per-case timeouts.
"""

import asyncio
import logging
from typing import Any

import chromadb
from chromadb.config import Settings as ChromaSettings

from evaluation.errors import RetrievalError
from models import RetrievedChunk
from storage.base import BaseRetriever
from utils.metrics import ACTIVE_CONNECTIONS

logger = logging.getLogger(__name__)

# Metadata keys checked, in order, for the chunk's source document
PATH_METADATA_KEYS = ("path", "source", "document_id")


class ChromaRetriever(BaseRetriever):
    """Retriever over a ChromaDB collection using cosine similarity.

    Attributes:
        client: ChromaDB client instance (None until initialized)
        collection: ChromaDB collection of knowledge base chunks
        collection_name: Name of the collection
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        """Initialize ChromaDB retriever.

        Args:
            config: Configuration dictionary with:
                - host: ChromaDB host (default: localhost)
                - port: ChromaDB port (default: 8000)
                - collection_name: Collection name (default: knowledge_base)
        """
        super().__init__("Chroma", config)

        self.host = self.config.get("host", "localhost")
        self.port = self.config.get("port", 8000)
        self.collection_name = self.config.get("collection_name", "knowledge_base")

        self.client: chromadb.ClientAPI | None = None
        self.collection: chromadb.Collection | None = None

    async def initialize(self) -> None:
        """Connect to ChromaDB and open the knowledge base collection.

        Raises:
            ConnectionError: If the server is unreachable or the collection is missing
        """
        if self._initialized:
            logger.debug("ChromaRetriever already initialized")
            return

        try:
            self.client = await asyncio.to_thread(
                chromadb.HttpClient,
                host=self.host,
                port=self.port,
                settings=ChromaSettings(anonymized_telemetry=False),
            )
            await asyncio.to_thread(self.client.heartbeat)

            # Never create: an empty collection would make every case fail silently
            self.collection = await asyncio.to_thread(
                self.client.get_collection, name=self.collection_name
            )
            chunk_count = await asyncio.to_thread(self.collection.count)

        except Exception as e:
            self.client = None
            self.collection = None
            error_msg = f"Failed to connect to ChromaDB at {self.host}:{self.port}: {e}"
            logger.error(error_msg)
            raise ConnectionError(error_msg) from e

        self._initialized = True
        ACTIVE_CONNECTIONS.labels(backend=self.name).inc()
        logger.info(
            f"Connected to ChromaDB collection '{self.collection_name}' "
            f"({chunk_count} chunks)"
        )

    async def retrieve(
        self,
        query: str,
        limit: int,
        category: str | None = None,
        min_score: float | None = None,
    ) -> list[RetrievedChunk]:
        """Retrieve chunks by vector similarity.

        ChromaDB cosine distance is in range [0, 2]; it is converted to a
        similarity score in [0, 1] as ``1 - distance / 2``.

        Args:
            query: Natural-language query
            limit: Maximum number of chunks to return
            category: Optional category metadata filter
            min_score: Optional minimum similarity score

        Returns:
            Chunks sorted by descending score

        Raises:
            RetrievalError: If the backend is not initialized or the query fails
        """
        if not self._initialized or self.collection is None:
            raise RetrievalError("ChromaRetriever not initialized. Call initialize() first.")

        try:
            results = await asyncio.to_thread(
                self.collection.query,
                query_texts=[query],
                n_results=limit,
                where={"category": category} if category else None,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise RetrievalError(f"Failed to retrieve from ChromaDB: {e}") from e

        if not results["ids"] or not results["ids"][0]:
            logger.debug(f"No results for query: {query!r}")
            return []

        chunks = []
        for chunk_id, document, metadata, distance in zip(
            results["ids"][0],
            results["documents"][0],
            results["metadatas"][0],
            results["distances"][0],
        ):
            score = 1.0 - (distance / 2.0)
            if min_score is not None and score < min_score:
                continue

            chunks.append(self._to_chunk(chunk_id, document, metadata or {}, score))

        chunks.sort(key=lambda c: c.score, reverse=True)
        return chunks[:limit]

    async def close(self) -> None:
        """Drop client references.

        The HTTP client has no explicit close; releasing references is enough.
        """
        if self._initialized:
            ACTIVE_CONNECTIONS.labels(backend=self.name).dec()
            logger.debug("ChromaDB client released")

        self.collection = None
        self.client = None
        self._initialized = False

    @staticmethod
    def _to_chunk(
        chunk_id: str,
        document: str | None,
        metadata: dict[str, Any],
        score: float,
    ) -> RetrievedChunk:
        """Map one ChromaDB hit to a RetrievedChunk."""
        path = next(
            (str(metadata[key]) for key in PATH_METADATA_KEYS if metadata.get(key)),
            chunk_id,
        )

        def optional(key: str) -> str | None:
            value = metadata.get(key)
            return str(value) if value not in (None, "") else None

        return RetrievedChunk(
            path=path,
            content=document or "",
            score=score,
            category=optional("category"),
            section=optional("section"),
            title=optional("title"),
        )

    def __repr__(self) -> str:
        """String representation of ChromaRetriever."""
        return (
            f"ChromaRetriever(host='{self.host}', port={self.port}, "
            f"collection='{self.collection_name}', initialized={self._initialized})"
        )
