"""Base interface for retrieval backends under evaluation.

A retriever answers a natural-language query with a ranked list of chunks. The
evaluation harness only depends on this contract; concrete backends own their
connection lifecycle via initialize()/close() or ``async with``.
"""

from abc import ABC, abstractmethod
from typing import Any

from models import RetrievedChunk


class BaseRetriever(ABC):
    """Abstract base class for retrieval backends.

    Implementations must be safe to call repeatedly and independently, and
    must surface failures by raising rather than returning sentinel values.

    Attributes:
        name: Human-readable name of the backend
        config: Optional configuration dictionary
    """

    def __init__(self, name: str, config: dict[str, Any] | None = None) -> None:
        """Initialize the retriever.

        Args:
            name: Name of the backend (e.g., "Chroma")
            config: Optional configuration dictionary
        """
        self.name = name
        self.config = config or {}
        self._initialized = False

    async def initialize(self) -> None:
        """Acquire backend resources (connections, handles).

        Should be idempotent. The default implementation has nothing to acquire.

        Raises:
            ConnectionError: If unable to connect to the backend
        """
        self._initialized = True

    @abstractmethod
    async def retrieve(
        self,
        query: str,
        limit: int,
        category: str | None = None,
        min_score: float | None = None,
    ) -> list[RetrievedChunk]:
        """Retrieve chunks relevant to a query.

        Args:
            query: Natural-language query
            limit: Maximum number of chunks to return
            category: Optional category filter
            min_score: Optional minimum relevance score

        Returns:
            Chunks sorted by descending score, at most ``limit`` long

        Raises:
            RetrievalError: If retrieval fails
        """

    async def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def __aenter__(self) -> "BaseRetriever":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        """String representation of the retriever."""
        return f"{self.__class__.__name__}(name='{self.name}')"
