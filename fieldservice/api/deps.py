"""Request-scoped service wiring"""

from functools import lru_cache
from typing import Any

from fastapi import Depends
from sqlalchemy.orm import Session

from fieldservice.database.session import get_db
from fieldservice.rag.document_store import DocumentStore
from fieldservice.rag.factory import AIServiceFactory
from fieldservice.rag.retriever import Retriever
from fieldservice.rag.vector_store import VectorStore
from fieldservice.services.file_processor import FileProcessor
from fieldservice.services.file_service import FileService
from fieldservice.services.search_analytics import SearchAnalyticsService


@lru_cache(maxsize=1)
def get_vector_store() -> VectorStore:
    """Shared Qdrant wrapper; connects on first use"""
    return VectorStore()


def get_embeddings_service() -> Any:
    return AIServiceFactory.get_embeddings_service()


def get_document_store(
    db: Session = Depends(get_db),
    vector_store: VectorStore = Depends(get_vector_store)
) -> DocumentStore:
    return DocumentStore(db, vector_store)


def get_retriever(
    document_store: DocumentStore = Depends(get_document_store),
    embeddings: Any = Depends(get_embeddings_service)
) -> Retriever:
    return Retriever(embeddings, document_store)


def get_file_processor(
    db: Session = Depends(get_db),
    document_store: DocumentStore = Depends(get_document_store),
    embeddings: Any = Depends(get_embeddings_service)
) -> FileProcessor:
    return FileProcessor(db, document_store, embeddings)


def get_search_analytics(db: Session = Depends(get_db)) -> SearchAnalyticsService:
    return SearchAnalyticsService(db)


def get_file_service(
    db: Session = Depends(get_db),
    document_store: DocumentStore = Depends(get_document_store)
) -> FileService:
    return FileService(db, document_store)
