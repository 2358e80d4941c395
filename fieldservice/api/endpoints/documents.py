"""Document processing and semantic search endpoints"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional, List
import logging
import time

from fieldservice.api.deps import (
    get_document_store,
    get_file_processor,
    get_retriever,
    get_search_analytics
)
from fieldservice.exceptions import DatabaseException, FieldServiceException
from fieldservice.rag.document_store import DocumentStore, to_chunk_response
from fieldservice.rag.retriever import Retriever
from fieldservice.schemas.document import (
    DocumentChunksResponse,
    ProcessDocumentRequest,
    ProcessDocumentResponse,
    ProcessingResult
)
from fieldservice.schemas.search import SearchRequest, SearchResponse
from fieldservice.security.auth import CurrentUser, get_current_user
from fieldservice.services.file_processor import FileProcessor
from fieldservice.services.search_analytics import SearchAnalyticsService
from fieldservice.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

FAILURE_STATUS = {
    "not_found": 404,
    "validation": 400,
    "upstream": 502,
    "storage": 500,
    "internal": 500,
}


def raise_for_failure(result: ProcessingResult):
    """Turn a failed ProcessingResult into an HTTP error"""
    if not result.success:
        raise HTTPException(
            status_code=FAILURE_STATUS.get(result.error_type, 500),
            detail=result.error or "Failed to process document"
        )


@router.post("/documents/process", response_model=ProcessDocumentResponse)
async def process_document(
    request: ProcessDocumentRequest,
    processor: FileProcessor = Depends(get_file_processor),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Chunk, embed and store a file

    - **file_id**: File to process
    - **text_content**: Already extracted text (optional; otherwise read from the stored file)
    - **options**: chunk_size, chunk_overlap, max_chunks
    """
    try:
        result = processor.process_file(
            request.file_id,
            options=request.options,
            text_content=request.text_content
        )
        raise_for_failure(result)

        return ProcessDocumentResponse(
            success=True,
            file_id=result.file_id,
            chunks_count=result.chunks_count,
            message="Document processed successfully"
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing document: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process document")


@router.get("/documents/chunks/{file_id}", response_model=DocumentChunksResponse)
async def get_document_chunks(
    file_id: str,
    include_embeddings: bool = False,
    document_store: DocumentStore = Depends(get_document_store),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get chunks of a file in index order"""
    try:
        chunks = document_store.get_chunks(file_id)
        embeddings = {}
        if include_embeddings:
            embeddings = document_store.get_chunk_embeddings([c.id for c in chunks])

        items = [to_chunk_response(c, embeddings.get(c.id)) for c in chunks]
        return DocumentChunksResponse(success=True, chunks=items, count=len(items))
    except FieldServiceException:
        raise
    except Exception as e:
        logger.error(f"Error fetching document chunks: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch document chunks")


def _run_search(
    query: str,
    match_threshold: float,
    match_count: int,
    file_ids: Optional[List[str]],
    retriever: Retriever,
    analytics: SearchAnalyticsService,
    user: CurrentUser
) -> SearchResponse:
    started = time.perf_counter()
    results = retriever.search(
        query,
        match_threshold=match_threshold,
        match_count=match_count,
        file_ids=file_ids
    )
    execution_time_ms = int((time.perf_counter() - started) * 1000)

    analytics_id = None
    try:
        analytics_id = analytics.track_query(
            user_id=user.id,
            query=query,
            results_count=len(results),
            similarity_threshold=match_threshold,
            execution_time_ms=execution_time_ms
        )
    except DatabaseException as e:
        logger.warning(f"Search succeeded but was not tracked: {e}")

    return SearchResponse(
        success=True,
        query=query.strip(),
        results=results,
        count=len(results),
        execution_time_ms=execution_time_ms,
        analytics_id=analytics_id
    )


@router.post("/documents/search", response_model=SearchResponse)
async def search_documents(
    request: SearchRequest,
    retriever: Retriever = Depends(get_retriever),
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Semantic search over processed documents

    - **query**: Search text
    - **match_threshold**: Minimum similarity (0-1)
    - **match_count**: Maximum number of results
    - **file_ids**: Restrict the search to these files
    """
    try:
        return _run_search(
            request.query,
            request.match_threshold,
            request.match_count,
            request.file_ids,
            retriever,
            analytics,
            current_user
        )
    except FieldServiceException:
        raise
    except Exception as e:
        logger.error(f"Error in document search: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Search failed")


@router.get("/documents/search", response_model=SearchResponse)
async def search_documents_get(
    q: Optional[str] = None,
    threshold: float = Query(settings.RAG_MATCH_THRESHOLD, ge=0.0, le=1.0),
    count: int = Query(settings.RAG_MATCH_COUNT, ge=1, le=100),
    fileIds: Optional[str] = None,
    retriever: Retriever = Depends(get_retriever),
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Semantic search via query string

    - **fileIds**: Comma separated file ids; blanks are ignored
    """
    file_ids = [f.strip() for f in fileIds.split(",") if f.strip()] if fileIds else None

    try:
        return _run_search(
            q or "",
            threshold,
            count,
            file_ids or None,
            retriever,
            analytics,
            current_user
        )
    except FieldServiceException:
        raise
    except Exception as e:
        logger.error(f"Error in document search: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Search failed")
