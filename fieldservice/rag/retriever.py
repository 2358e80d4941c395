"""Semantic search retriever"""

from typing import Any, List, Optional
import logging

from fieldservice.exceptions import ValidationException
from fieldservice.rag.config import RAGConfig, rag_config
from fieldservice.rag.document_store import DocumentStore
from fieldservice.schemas.search import SearchResultItem

logger = logging.getLogger(__name__)


class Retriever:
    """Retriever for semantic search over stored chunks"""

    def __init__(self, embeddings: Any, document_store: DocumentStore, config: RAGConfig = rag_config):
        self.embeddings = embeddings
        self.document_store = document_store
        self.match_threshold = config.match_threshold
        self.match_count = config.match_count

    def search(
        self,
        query: str,
        match_threshold: Optional[float] = None,
        match_count: Optional[int] = None,
        file_ids: Optional[List[str]] = None
    ) -> List[SearchResultItem]:
        """
        Retrieve chunks relevant to a query

        Args:
            query: User query text
            match_threshold: Minimum similarity, inclusive (default: from config)
            match_count: Maximum number of results (default: from config)
            file_ids: Restrict the search to these files (empty means all)

        Returns:
            Matches ordered by similarity descending; may be empty

        Raises:
            ValidationException: Blank query or out-of-range options
            UpstreamException: Embedding or vector index failure
        """
        if query is None or not query.strip():
            raise ValidationException("Search query is required")

        match_threshold = self.match_threshold if match_threshold is None else match_threshold
        match_count = self.match_count if match_count is None else match_count

        if not 0.0 <= match_threshold <= 1.0:
            raise ValidationException("match_threshold must be between 0 and 1")
        if match_count < 1:
            raise ValidationException("match_count must be at least 1")

        query = query.strip()
        logger.info(f"Generating embedding for query: {query[:50]}...")
        query_vector = self.embeddings.generate_embedding(query)

        logger.info(f"Searching for top-{match_count} chunks (threshold: {match_threshold})")
        matches = self.document_store.similarity_search(
            query_vector=query_vector,
            match_threshold=match_threshold,
            match_count=match_count,
            file_ids=file_ids or None
        )

        # The index already filters and sorts; keep the contract explicit
        results = sorted(
            (m for m in matches if m.similarity >= match_threshold),
            key=lambda m: m.similarity,
            reverse=True
        )[:match_count]

        logger.info(f"Retrieved {len(results)} chunks")
        for i, result in enumerate(results, 1):
            logger.debug(f"  {i}. Similarity: {result.similarity:.3f} - file {result.file_id} chunk {result.chunk_index}")

        return results
