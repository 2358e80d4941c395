"""Qdrant vector index for chunk embeddings"""

from typing import List, Dict, Any, Optional
from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    VectorParams,
    PointStruct,
    Filter,
    FieldCondition,
    FilterSelector,
    MatchAny,
    MatchValue
)
import logging

from fieldservice.exceptions import VectorStoreException
from fieldservice.rag.config import RAGConfig, rag_config

logger = logging.getLogger(__name__)


class VectorStore:
    """Vector store using Qdrant; point ids are DocumentChunk ids"""

    def __init__(
        self,
        client: Optional[QdrantClient] = None,
        collection_name: Optional[str] = None,
        vector_size: Optional[int] = None,
        config: RAGConfig = rag_config
    ):
        self.config = config
        self.client = client
        self.collection_name = collection_name or config.qdrant_collection
        self.vector_size = vector_size or config.vector_size
        self._initialized = False

    def _init_client(self) -> QdrantClient:
        """Initialize Qdrant client"""
        if self.config.qdrant_api_key:
            client = QdrantClient(
                url=self.config.qdrant_url,
                api_key=self.config.qdrant_api_key
            )
        else:
            client = QdrantClient(url=self.config.qdrant_url)

        logger.info(f"Connected to Qdrant at {self.config.qdrant_url}")
        return client

    def _ensure_initialized(self):
        """Connect and create the collection on first use"""
        if self._initialized:
            return
        try:
            if self.client is None:
                self.client = self._init_client()
            self._ensure_collection()
            self._initialized = True
        except Exception as e:
            logger.error(f"Failed to initialize Qdrant: {e}")
            raise VectorStoreException("Qdrant vector store is not available") from e

    def _ensure_collection(self):
        """Ensure collection exists, create if not"""
        if self.client.collection_exists(self.collection_name):
            logger.info(f"Collection exists: {self.collection_name}")
            return

        logger.info(f"Creating collection: {self.collection_name}")
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(
                size=self.vector_size,
                distance=Distance.COSINE
            )
        )

    @staticmethod
    def _file_filter(file_ids: List[str]) -> Filter:
        if len(file_ids) == 1:
            match = MatchValue(value=file_ids[0])
        else:
            match = MatchAny(any=list(file_ids))
        return Filter(must=[FieldCondition(key="file_id", match=match)])

    def health_check(self) -> bool:
        """Check if Qdrant is healthy"""
        try:
            self._ensure_initialized()
            self.client.get_collections()
            return True
        except Exception as e:
            logger.error(f"Qdrant health check failed: {e}")
            return False

    def insert_chunks(
        self,
        ids: List[str],
        vectors: List[List[float]],
        payloads: List[Dict[str, Any]]
    ) -> int:
        """
        Insert chunk embeddings

        Args:
            ids: Chunk ids (UUID strings)
            vectors: Embedding vectors
            payloads: Payloads; each must carry file_id

        Returns:
            Number of points written
        """
        self._ensure_initialized()

        points = [
            PointStruct(id=point_id, vector=vector, payload=payload)
            for point_id, vector, payload in zip(ids, vectors, payloads)
        ]
        try:
            self.client.upsert(
                collection_name=self.collection_name,
                points=points,
                wait=True
            )
        except Exception as e:
            logger.error(f"Error inserting chunks: {e}")
            raise VectorStoreException(f"Failed to insert embeddings: {e}") from e

        logger.info(f"Inserted {len(points)} points into {self.collection_name}")
        return len(points)

    def search(
        self,
        query_vector: List[float],
        limit: int,
        score_threshold: float,
        file_ids: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        """
        Search for similar chunks

        Args:
            query_vector: Query embedding vector
            limit: Maximum number of results
            score_threshold: Minimum cosine similarity
            file_ids: Optional list of owning files to search within

        Returns:
            List of {id, score, payload} ordered by score descending
        """
        self._ensure_initialized()

        query_filter = self._file_filter(file_ids) if file_ids else None
        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=query_vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=query_filter,
                with_payload=True
            )
        except Exception as e:
            logger.error(f"Error searching chunks: {e}")
            raise VectorStoreException(f"Similarity search failed: {e}") from e

        results = [
            {"id": str(point.id), "score": point.score, "payload": point.payload or {}}
            for point in response.points
        ]
        logger.info(f"Found {len(results)} chunks (threshold: {score_threshold})")
        return results

    def delete_file_chunks(self, file_id: str):
        """Delete every point belonging to a file"""
        self._ensure_initialized()
        try:
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=FilterSelector(filter=self._file_filter([file_id])),
                wait=True
            )
        except Exception as e:
            logger.error(f"Error deleting points for file {file_id}: {e}")
            raise VectorStoreException(f"Failed to delete embeddings: {e}") from e

        logger.info(f"Deleted points for file {file_id} from {self.collection_name}")

    def count(self, file_id: Optional[str] = None) -> int:
        """Count points, optionally for one file"""
        self._ensure_initialized()
        count_filter = self._file_filter([file_id]) if file_id else None
        try:
            result = self.client.count(
                collection_name=self.collection_name,
                count_filter=count_filter,
                exact=True
            )
        except Exception as e:
            logger.error(f"Error counting points: {e}")
            raise VectorStoreException(f"Failed to count embeddings: {e}") from e
        return result.count

    def get_vectors(self, ids: List[str]) -> Dict[str, List[float]]:
        """Fetch stored embeddings by chunk id"""
        self._ensure_initialized()
        try:
            points = self.client.retrieve(
                collection_name=self.collection_name,
                ids=ids,
                with_vectors=True,
                with_payload=False
            )
        except Exception as e:
            logger.error(f"Error retrieving points: {e}")
            raise VectorStoreException(f"Failed to retrieve embeddings: {e}") from e
        return {str(point.id): point.vector for point in points}

