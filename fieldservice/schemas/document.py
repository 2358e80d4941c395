"""Document processing schemas"""

from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Optional, List
from datetime import datetime

from fieldservice.config import settings


class ChunkMetadata(BaseModel):
    """Metadata stored alongside every chunk"""
    chunk_index: int = Field(ge=0)
    word_count: int = Field(ge=0)
    length: int = Field(ge=0)
    start_index: Optional[int] = None
    end_index: Optional[int] = None
    token_count: Optional[int] = None
    total_chunks: Optional[int] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ProcessingOptions(BaseModel):
    """Chunking options for a processing run"""
    chunk_size: int = Field(default=settings.RAG_CHUNK_SIZE, ge=1)
    chunk_overlap: int = Field(default=settings.RAG_CHUNK_OVERLAP, ge=0)
    max_chunks: int = Field(default=settings.RAG_MAX_CHUNKS, ge=1)


class ProcessDocumentRequest(BaseModel):
    """Process a file, optionally with already-extracted text"""
    file_id: str = Field(min_length=1)
    text_content: Optional[str] = None
    options: ProcessingOptions = Field(default_factory=ProcessingOptions)


class ProcessFileRequest(ProcessingOptions):
    """Body of POST /files/{file_id}/process"""
    reprocess: bool = False


class BatchProcessRequest(BaseModel):
    """Batch processing request"""
    file_ids: List[str] = Field(default_factory=list)
    process_unprocessed_only: bool = True
    options: ProcessingOptions = Field(default_factory=ProcessingOptions)


class ProcessingResult(BaseModel):
    """Outcome of processing one file"""
    file_id: str
    success: bool
    chunks_count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None  # not_found, validation, upstream, storage, internal

    @classmethod
    def ok(cls, file_id: str, chunks_count: int) -> "ProcessingResult":
        return cls(file_id=file_id, success=True, chunks_count=chunks_count)

    @classmethod
    def failure(cls, file_id: str, error: str, error_type: str = "internal") -> "ProcessingResult":
        return cls(file_id=file_id, success=False, error=error, error_type=error_type)


class BatchProcessingResult(BaseModel):
    """Accumulated outcome of a batch run"""
    processed: int = 0
    failed: int = 0
    results: List[ProcessingResult] = Field(default_factory=list)

    @computed_field
    @property
    def total(self) -> int:
        return len(self.results)

    @computed_field
    @property
    def message(self) -> str:
        if not self.results:
            return "No files to process"
        return f"Batch processing completed. {self.processed} files processed, {self.failed} failed."

    def record(self, result: ProcessingResult) -> "BatchProcessingResult":
        """Fold one file's result into a new accumulator"""
        return BatchProcessingResult(
            processed=self.processed + (1 if result.success else 0),
            failed=self.failed + (0 if result.success else 1),
            results=[*self.results, result]
        )


class ProcessDocumentResponse(BaseModel):
    """Single file processing response"""
    success: bool
    file_id: str
    chunks_count: int
    message: str


class FileSummary(BaseModel):
    """File fields returned with chunks and search results"""
    id: str
    filename: str
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    is_processed: bool
    processed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentChunkResponse(BaseModel):
    """Document chunk response"""
    id: str
    file_id: str
    chunk_index: int
    content: str
    metadata: Optional[ChunkMetadata] = None
    token_count: Optional[int] = None
    embedding: Optional[List[float]] = None
    created_at: datetime


class DocumentChunksResponse(BaseModel):
    """Chunks of one file"""
    success: bool = True
    chunks: List[DocumentChunkResponse]
    count: int


class FileProcessingStatus(BaseModel):
    """Processing status of one file with a few sample chunks"""
    file: FileSummary
    total_chunks: int
    sample_chunks: List[DocumentChunkResponse]


class ProcessingStatistics(BaseModel):
    """Corpus-wide processing statistics"""
    total_files: int
    processed_files: int
    unprocessed_files: int
    total_chunks: int


class BatchStatusResponse(BaseModel):
    """GET /files/process-batch"""
    stats: ProcessingStatistics
    unprocessed_files: int
    unprocessed_files_list: List[FileSummary]
    total_unprocessed: int


class FileUploadResponse(BaseModel):
    """File upload response"""
    success: bool
    file: FileSummary
    warnings: List[str] = Field(default_factory=list)


class FileDeleteResponse(BaseModel):
    """File deletion response"""
    success: bool
    file_id: str
    chunks_deleted: int


class FileListResponse(BaseModel):
    """List of files"""
    items: List[FileSummary]
    total: int
