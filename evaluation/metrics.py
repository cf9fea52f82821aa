"""Retrieval quality metrics.

This module provides the set-based information retrieval metrics used to score
one test case: precision, recall, F1, and keyword/section coverage of the
retrieved content.

Document identifiers are compared with one of two rules:

- ``substring`` (default): a retrieved identifier matches an expected one when
  either contains the other. This tolerates path-prefix vs. bare-filename
  mismatches but can over-match identifiers that share prefixes.
- ``exact``: both identifiers are canonicalized (separators normalized, final
  path component kept, case-folded) and compared for equality.
"""

from typing import Iterable, Literal, Sequence

from models import RetrievedChunk

MatchMode = Literal["substring", "exact"]


def canonical_document_id(identifier: str) -> str:
    """Canonicalize a document identifier for exact comparison.

    Args:
        identifier: Raw path or identifier

    Returns:
        Case-folded final path component
    """
    normalized = identifier.replace("\\", "/").strip().rstrip("/")
    return normalized.rsplit("/", 1)[-1].casefold()


class MetricsCalculator:
    """Calculate retrieval metrics for a single test case.

    All methods are pure; the only state is the document matching rule.
    """

    def __init__(self, match_mode: MatchMode = "substring") -> None:
        """Initialize metrics calculator.

        Args:
            match_mode: Document matching rule ("substring" or "exact")
        """
        if match_mode not in ("substring", "exact"):
            raise ValueError(f"Unknown document match mode: {match_mode}")
        self.match_mode = match_mode

    def documents_match(self, expected: str, retrieved: str) -> bool:
        """Check whether a retrieved identifier satisfies an expected one."""
        if self.match_mode == "exact":
            return canonical_document_id(expected) == canonical_document_id(retrieved)
        return expected in retrieved or retrieved in expected

    # -------------------------------------------------------------------------
    # Set-based retrieval metrics
    # -------------------------------------------------------------------------

    def calculate_precision(
        self,
        expected: Sequence[str],
        retrieved: Sequence[str],
    ) -> float:
        """Calculate precision.

        Precision is the fraction of retrieved documents that match at least one
        expected document. Nothing retrieved means no evidence of correctness.

        Args:
            expected: Expected document identifiers
            retrieved: Retrieved document identifiers

        Returns:
            Precision score (0.0-1.0)
        """
        if not retrieved:
            return 0.0

        relevant_count = sum(
            1
            for doc in retrieved
            if any(self.documents_match(exp, doc) for exp in expected)
        )

        return relevant_count / len(retrieved)

    def calculate_recall(
        self,
        expected: Sequence[str],
        retrieved: Sequence[str],
    ) -> float:
        """Calculate recall.

        Recall is the fraction of expected documents matched by at least one
        retrieved document. An empty expected set has nothing to miss.

        Args:
            expected: Expected document identifiers
            retrieved: Retrieved document identifiers

        Returns:
            Recall score (0.0-1.0)
        """
        if not expected:
            return 1.0

        found_count = sum(
            1
            for exp in expected
            if any(self.documents_match(exp, doc) for doc in retrieved)
        )

        return found_count / len(expected)

    def calculate_f1(self, precision: float, recall: float) -> float:
        """Calculate F1 as the harmonic mean of precision and recall.

        Args:
            precision: Precision score
            recall: Recall score

        Returns:
            F1 score (0.0-1.0)
        """
        if precision + recall == 0:
            return 0.0

        return 2 * (precision * recall) / (precision + recall)

    # -------------------------------------------------------------------------
    # Content coverage
    # -------------------------------------------------------------------------

    def keyword_coverage(
        self,
        expected_keywords: Iterable[str],
        chunks: Sequence[RetrievedChunk],
    ) -> tuple[list[str], list[str]]:
        """Partition expected keywords into found and missing.

        Matching is a case-insensitive substring search over the concatenated
        content of all retrieved chunks.

        Args:
            expected_keywords: Keywords expected in retrieved content
            chunks: Retrieved chunks

        Returns:
            Tuple of (found, missing), each in the original keyword order
        """
        content = " ".join(chunk.content.lower() for chunk in chunks)

        found = []
        missing = []
        for keyword in expected_keywords:
            if keyword.lower() in content:
                found.append(keyword)
            else:
                missing.append(keyword)

        return found, missing

    def section_coverage(
        self,
        expected_sections: Iterable[str],
        chunks: Sequence[RetrievedChunk],
    ) -> tuple[list[str], list[str]]:
        """Partition expected sections into found and missing.

        Args:
            expected_sections: Section identifiers expected in results
            chunks: Retrieved chunks

        Returns:
            Tuple of (found, missing)
        """
        retrieved_sections = {
            chunk.section.strip().casefold() for chunk in chunks if chunk.section
        }

        found = []
        missing = []
        for section in expected_sections:
            if section.strip().casefold() in retrieved_sections:
                found.append(section)
            else:
                missing.append(section)

        return found, missing
