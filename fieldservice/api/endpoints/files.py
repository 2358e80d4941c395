"""File upload, listing and processing endpoints"""

from fastapi import APIRouter, UploadFile, File as UploadField, HTTPException, Depends
from typing import Optional
import logging

from fieldservice.api.deps import get_file_processor, get_file_service
from fieldservice.api.endpoints.documents import raise_for_failure
from fieldservice.exceptions import AuthorizationException, FieldServiceException
from fieldservice.rag.document_store import to_chunk_response
from fieldservice.schemas.document import (
    BatchProcessRequest,
    BatchProcessingResult,
    BatchStatusResponse,
    FileDeleteResponse,
    FileListResponse,
    FileProcessingStatus,
    FileSummary,
    FileUploadResponse,
    ProcessDocumentResponse,
    ProcessFileRequest,
    ProcessingOptions
)
from fieldservice.security.auth import CurrentUser, UserRole, get_current_user, require_roles
from fieldservice.services.file_processor import FileProcessor
from fieldservice.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter()

SAMPLE_CHUNKS = 5
MANAGER_ROLES = (UserRole.ADMIN, UserRole.SUPERVISOR)


@router.post("/files", response_model=FileUploadResponse)
async def upload_file(
    file: UploadFile = UploadField(...),
    file_service: FileService = Depends(get_file_service),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Upload a file

    Images up to 10 MB; PDF, text, Word, Excel and CSV documents up to 50 MB.
    Uploaded files are not processed until requested.
    """
    try:
        record, warnings = file_service.register_upload(
            filename=file.filename,
            mime_type=file.content_type or "application/octet-stream",
            stream=file.file,
            uploaded_by=current_user.id
        )
        return FileUploadResponse(
            success=True,
            file=FileSummary.model_validate(record),
            warnings=warnings
        )
    except FieldServiceException:
        raise
    except Exception as e:
        logger.error(f"Error uploading file: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload file")


@router.get("/files", response_model=FileListResponse)
async def list_files(
    processed: Optional[bool] = None,
    file_service: FileService = Depends(get_file_service),
    current_user: CurrentUser = Depends(get_current_user)
):
    """List files, newest first; filter by processing state with **processed**"""
    files = file_service.list_files(processed=processed)
    return FileListResponse(
        items=[FileSummary.model_validate(f) for f in files],
        total=len(files)
    )


@router.delete("/files/{file_id}", response_model=FileDeleteResponse)
async def delete_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete a file with its chunks; uploader, admin or supervisor only"""
    try:
        record = file_service.get_file(file_id)
        if record.uploaded_by != current_user.id and current_user.role not in MANAGER_ROLES:
            raise AuthorizationException("Only the uploader or a manager can delete this file")

        chunks_deleted = file_service.delete_file(file_id)
        return FileDeleteResponse(success=True, file_id=file_id, chunks_deleted=chunks_deleted)
    except FieldServiceException:
        raise
    except Exception as e:
        logger.error(f"Error deleting file {file_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete file")


@router.post("/files/process-batch", response_model=BatchProcessingResult)
async def process_batch(
    request: Optional[BatchProcessRequest] = None,
    processor: FileProcessor = Depends(get_file_processor),
    current_user: CurrentUser = Depends(require_roles(*MANAGER_ROLES))
):
    """
    Process several files (admin/supervisor)

    Without **file_ids**, up to 10 unprocessed files are picked oldest first.
    One file failing does not stop the others.
    """
    request = request or BatchProcessRequest()
    logger.info(f"Batch processing requested by {current_user.id}")
    return processor.process_batch(
        file_ids=request.file_ids,
        process_unprocessed_only=request.process_unprocessed_only,
        options=request.options
    )


@router.get("/files/process-batch", response_model=BatchStatusResponse)
async def get_batch_status(
    processor: FileProcessor = Depends(get_file_processor),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Processing statistics and the files waiting to be processed"""
    try:
        stats = processor.get_processing_statistics()
        pending = processor.list_unprocessed_files()
        return BatchStatusResponse(
            stats=stats,
            unprocessed_files=stats.unprocessed_files,
            unprocessed_files_list=[FileSummary.model_validate(f) for f in pending],
            total_unprocessed=len(pending)
        )
    except FieldServiceException:
        raise
    except Exception as e:
        logger.error(f"Error getting batch status: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get processing status")


@router.post("/files/{file_id}/process", response_model=ProcessDocumentResponse)
async def process_file(
    file_id: str,
    request: Optional[ProcessFileRequest] = None,
    processor: FileProcessor = Depends(get_file_processor),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Process one stored file

    - **reprocess**: Delete existing chunks first
    - **chunk_size**, **chunk_overlap**, **max_chunks**: Chunking options
    """
    request = request or ProcessFileRequest()
    options = ProcessingOptions(
        chunk_size=request.chunk_size,
        chunk_overlap=request.chunk_overlap,
        max_chunks=request.max_chunks
    )

    try:
        if request.reprocess:
            result = processor.reprocess_file(file_id, options)
        else:
            result = processor.process_file(file_id, options)
        raise_for_failure(result)

        return ProcessDocumentResponse(
            success=True,
            file_id=file_id,
            chunks_count=result.chunks_count,
            message=f"File processed successfully into {result.chunks_count} chunks"
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing file {file_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process file")


@router.get("/files/{file_id}/process", response_model=FileProcessingStatus)
async def get_file_processing_status(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Processing state of a file with its first chunks"""
    record = file_service.get_file(file_id)
    document_store = file_service.document_store
    samples = document_store.get_chunks(file_id, limit=SAMPLE_CHUNKS)

    return FileProcessingStatus(
        file=FileSummary.model_validate(record),
        total_chunks=document_store.count_chunks(file_id),
        sample_chunks=[to_chunk_response(c) for c in samples]
    )
