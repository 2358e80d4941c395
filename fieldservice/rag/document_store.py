"""Chunk persistence across the relational store and the vector index"""

from datetime import datetime
from typing import Dict, List, Optional
import logging
import uuid

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from fieldservice.exceptions import StorageException, VectorStoreException
from fieldservice.models.document_chunk import DocumentChunk
from fieldservice.models.file import File
from fieldservice.rag.chunker import TextChunk
from fieldservice.rag.vector_store import VectorStore
from fieldservice.schemas.document import (
    ChunkMetadata,
    DocumentChunkResponse,
    FileSummary,
    ProcessingStatistics
)
from fieldservice.schemas.search import SearchResultItem

logger = logging.getLogger(__name__)


def parse_chunk_metadata(raw: Optional[dict]) -> Optional[ChunkMetadata]:
    """Validate a metadata blob read back from the datastore"""
    if raw is None:
        return None
    try:
        return ChunkMetadata.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Discarding malformed chunk metadata: {e.errors()}")
        return None


def to_chunk_response(chunk: DocumentChunk, embedding: Optional[List[float]] = None) -> DocumentChunkResponse:
    return DocumentChunkResponse(
        id=chunk.id,
        file_id=chunk.file_id,
        chunk_index=chunk.chunk_index,
        content=chunk.content,
        metadata=parse_chunk_metadata(chunk.chunk_metadata),
        token_count=chunk.token_count,
        embedding=embedding,
        created_at=chunk.created_at
    )


class DocumentStore:
    """
    Stores chunk rows in SQL and their embeddings in Qdrant.

    A file's chunks are written as one unit: either every row and point
    exists and the file is marked processed, or nothing for that file does.
    """

    def __init__(self, db: Session, vector_store: VectorStore):
        self.db = db
        self.vector_store = vector_store

    def store_chunks(
        self,
        file: File,
        chunks: List[TextChunk],
        embeddings: List[List[float]]
    ) -> List[DocumentChunk]:
        """
        Persist chunks with embeddings and mark the file processed

        Args:
            file: Owning file
            chunks: Chunks in index order
            embeddings: One vector per chunk

        Returns:
            Created chunk rows

        Raises:
            StorageException: If anything failed; partial writes are removed
        """
        if len(chunks) != len(embeddings):
            raise StorageException(
                f"Got {len(embeddings)} embeddings for {len(chunks)} chunks"
            )

        file_id = file.id
        chunk_ids = [str(uuid.uuid4()) for _ in chunks]
        payloads = [
            {
                "file_id": file_id,
                "chunk_id": chunk_id,
                "chunk_index": chunk.chunk_index,
            }
            for chunk_id, chunk in zip(chunk_ids, chunks)
        ]

        try:
            self.vector_store.insert_chunks(chunk_ids, embeddings, payloads)

            rows = []
            for chunk_id, chunk in zip(chunk_ids, chunks):
                row = DocumentChunk(
                    id=chunk_id,
                    file_id=file_id,
                    chunk_index=chunk.chunk_index,
                    content=chunk.content,
                    chunk_metadata=chunk.metadata.model_dump(exclude_none=True),
                    token_count=chunk.metadata.token_count
                )
                self.db.add(row)
                rows.append(row)

            file.is_processed = True
            file.processed_at = datetime.utcnow()
            self.db.commit()
        except Exception as e:
            logger.error(f"Failed to store chunks for file {file_id}: {e}")
            self.db.rollback()
            self._discard_vectors(file_id)
            raise StorageException(f"Failed to store chunks: {e}") from e

        logger.info(f"Stored {len(rows)} chunks for file {file_id}")
        return rows

    def _discard_vectors(self, file_id: str):
        """Remove points written before a failed commit"""
        try:
            self.vector_store.delete_file_chunks(file_id)
        except VectorStoreException as e:
            logger.error(f"Could not remove orphaned points for file {file_id}: {e}")

    def delete_file_chunks(self, file_id: str, commit: bool = True) -> int:
        """
        Delete all chunks of a file from both stores

        Args:
            file_id: Owning file
            commit: Commit the SQL delete (False when part of a larger unit)

        Returns:
            Number of chunk rows deleted
        """
        deleted = self.db.query(DocumentChunk).filter(
            DocumentChunk.file_id == file_id
        ).delete(synchronize_session=False)

        file = self.db.get(File, file_id)
        if file:
            file.is_processed = False
            file.processed_at = None

        try:
            self.vector_store.delete_file_chunks(file_id)
        except VectorStoreException:
            self.db.rollback()
            raise

        if commit:
            self.db.commit()

        logger.info(f"Deleted {deleted} chunks for file {file_id}")
        return deleted

    def get_chunks(self, file_id: str, limit: Optional[int] = None) -> List[DocumentChunk]:
        """Get chunks of a file in index order"""
        query = self.db.query(DocumentChunk).filter(
            DocumentChunk.file_id == file_id
        ).order_by(DocumentChunk.chunk_index)
        if limit:
            query = query.limit(limit)
        return query.all()

    def get_chunk_embeddings(self, chunk_ids: List[str]) -> Dict[str, List[float]]:
        """Fetch embeddings for chunks from the vector index"""
        if not chunk_ids:
            return {}
        return self.vector_store.get_vectors(chunk_ids)

    def count_chunks(self, file_id: Optional[str] = None) -> int:
        query = self.db.query(func.count(DocumentChunk.id))
        if file_id:
            query = query.filter(DocumentChunk.file_id == file_id)
        return query.scalar() or 0

    def similarity_search(
        self,
        query_vector: List[float],
        match_threshold: float,
        match_count: int,
        file_ids: Optional[List[str]] = None
    ) -> List[SearchResultItem]:
        """
        Find chunks whose embedding is similar to the query vector

        Args:
            query_vector: Embedded query
            match_threshold: Minimum similarity (inclusive)
            match_count: Maximum number of matches
            file_ids: Optional owning files to search within

        Returns:
            Matches ordered by similarity descending
        """
        hits = self.vector_store.search(
            query_vector=query_vector,
            limit=match_count,
            score_threshold=match_threshold,
            file_ids=file_ids
        )
        if not hits:
            return []

        rows = self.db.query(DocumentChunk).options(
            joinedload(DocumentChunk.file)
        ).filter(DocumentChunk.id.in_([hit["id"] for hit in hits])).all()
        rows_by_id = {row.id: row for row in rows}

        results = []
        for hit in hits:
            row = rows_by_id.get(hit["id"])
            if row is None:
                # Point without a row: left behind by an interrupted delete
                logger.warning(f"Skipping vector {hit['id']} with no chunk row")
                continue
            results.append(SearchResultItem(
                id=row.id,
                file_id=row.file_id,
                content=row.content,
                chunk_index=row.chunk_index,
                metadata=parse_chunk_metadata(row.chunk_metadata),
                similarity=hit["score"],
                file=FileSummary.model_validate(row.file) if row.file else None
            ))
        return results

    def get_processing_statistics(self) -> ProcessingStatistics:
        """File and chunk totals"""
        total_files = self.db.query(func.count(File.id)).scalar() or 0
        processed_files = self.db.query(func.count(File.id)).filter(
            File.is_processed.is_(True)
        ).scalar() or 0

        return ProcessingStatistics(
            total_files=total_files,
            processed_files=processed_files,
            unprocessed_files=total_files - processed_files,
            total_chunks=self.count_chunks()
        )
