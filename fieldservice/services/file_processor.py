"""File processing: extract, chunk, embed and store"""

from functools import reduce
from typing import Any, List, Optional
import logging

from sqlalchemy.orm import Session

from fieldservice.exceptions import (
    FieldServiceException,
    NotFoundException,
    StorageException,
    UpstreamException,
    ValidationException
)
from fieldservice.models.file import File
from fieldservice.rag.chunker import TextChunk, chunk_document
from fieldservice.rag.config import RAGConfig, rag_config
from fieldservice.rag.document_store import DocumentStore
from fieldservice.rag.text_extraction import extract_text
from fieldservice.schemas.document import (
    BatchProcessingResult,
    ProcessingOptions,
    ProcessingResult,
    ProcessingStatistics
)
from fieldservice.services.file_validation import can_process_file_type

logger = logging.getLogger(__name__)

ERROR_TYPES = (
    (NotFoundException, "not_found"),
    (ValidationException, "validation"),
    (UpstreamException, "upstream"),
    (StorageException, "storage"),
)


def error_type_for(error: Exception) -> str:
    for exc_class, error_type in ERROR_TYPES:
        if isinstance(error, exc_class):
            return error_type
    return "internal"


class FileProcessor:
    """Turns uploaded files into searchable chunks, one file at a time"""

    def __init__(
        self,
        db: Session,
        document_store: DocumentStore,
        embeddings: Any,
        config: RAGConfig = rag_config
    ):
        self.db = db
        self.document_store = document_store
        self.embeddings = embeddings
        self.max_batch_size = config.max_batch_size

    def process_file(
        self,
        file_id: str,
        options: Optional[ProcessingOptions] = None,
        text_content: Optional[str] = None
    ) -> ProcessingResult:
        """
        Process one file

        Args:
            file_id: File to process
            options: Chunking options
            text_content: Already extracted text; skips reading the stored file

        Returns:
            ProcessingResult; failures are reported, never raised
        """
        options = options or ProcessingOptions()
        try:
            chunks_count = self._process(file_id, options, text_content)
            return ProcessingResult.ok(file_id, chunks_count)
        except FieldServiceException as e:
            error_type = error_type_for(e)
            if error_type in ("not_found", "validation"):
                logger.warning(f"File {file_id} not processed: {e}")
            else:
                logger.error(f"Error processing file {file_id}: {e}")
            return ProcessingResult.failure(file_id, str(e), error_type)
        except Exception as e:
            logger.error(f"Unexpected error processing file {file_id}: {str(e)}", exc_info=True)
            self.db.rollback()
            return ProcessingResult.failure(file_id, f"Processing failed: {str(e)}", "internal")

    def _process(self, file_id: str, options: ProcessingOptions, text_content: Optional[str]) -> int:
        file = self.db.get(File, file_id)
        if not file:
            raise NotFoundException(f"File {file_id} not found")

        if file.is_processed:
            raise ValidationException(f"File {file_id} is already processed; use reprocess to rebuild its chunks")

        if not can_process_file_type(file.mime_type):
            raise ValidationException(f"File type {file.mime_type} cannot be processed")

        logger.info(f"Processing file {file_id}: {file.filename}")

        text = text_content if text_content is not None else self._extract(file)
        if not text or not text.strip():
            raise ValidationException("No text content found in file")

        chunks = self._chunk(file, text, options)
        if not chunks:
            raise ValidationException("No chunks could be created from file")

        try:
            embeddings = self.embeddings.generate_embeddings_batch([c.content for c in chunks])
        except UpstreamException:
            raise
        except Exception as e:
            raise UpstreamException(f"Embedding generation failed: {str(e)}") from e
        logger.info(f"Generated {len(embeddings)} embeddings")

        self.document_store.store_chunks(file, chunks, embeddings)
        logger.info(f"Successfully processed file {file_id} into {len(chunks)} chunks")
        return len(chunks)

    @staticmethod
    def _extract(file: File) -> str:
        try:
            text = extract_text(file.file_path, file.mime_type)
        except ValidationException:
            raise
        except Exception as e:
            raise FieldServiceException(f"Text extraction failed: {str(e)}") from e
        logger.info(f"Extracted {len(text)} characters from {file.filename}")
        return text

    @staticmethod
    def _chunk(file: File, text: str, options: ProcessingOptions) -> List[TextChunk]:
        chunks = chunk_document(text, options.chunk_size, options.chunk_overlap)
        if len(chunks) > options.max_chunks:
            logger.warning(
                f"File {file.id} produced {len(chunks)} chunks, keeping the first {options.max_chunks}"
            )
            chunks = chunks[:options.max_chunks]

        total = len(chunks)
        for chunk in chunks:
            chunk.metadata = chunk.metadata.model_copy(update={
                "total_chunks": total,
                "filename": file.filename,
                "mime_type": file.mime_type
            })
        return chunks

    def reprocess_file(self, file_id: str, options: Optional[ProcessingOptions] = None) -> ProcessingResult:
        """Delete a file's chunks and process it again"""
        file = self.db.get(File, file_id)
        if not file:
            return ProcessingResult.failure(file_id, f"File {file_id} not found", "not_found")

        try:
            deleted = self.document_store.delete_file_chunks(file_id)
        except UpstreamException as e:
            logger.error(f"Could not clear chunks of file {file_id}: {e}")
            return ProcessingResult.failure(file_id, str(e), "upstream")

        logger.info(f"Cleared {deleted} chunks of file {file_id} for reprocessing")
        return self.process_file(file_id, options)

    def list_unprocessed_files(self, limit: Optional[int] = None) -> List[File]:
        """Unprocessed files with a processable type, oldest first"""
        files = self.db.query(File).filter(
            File.is_processed.is_(False)
        ).order_by(File.created_at.asc()).all()

        files = [f for f in files if can_process_file_type(f.mime_type)]
        return files[:limit] if limit else files

    def process_batch(
        self,
        file_ids: Optional[List[str]] = None,
        process_unprocessed_only: bool = True,
        options: Optional[ProcessingOptions] = None
    ) -> BatchProcessingResult:
        """
        Process several files sequentially

        Args:
            file_ids: Files to process; when empty, unprocessed files are picked
            process_unprocessed_only: Skip files already processed
            options: Chunking options for every file

        Returns:
            BatchProcessingResult with one entry per attempted file
        """
        if file_ids:
            targets = list(dict.fromkeys(file_ids))
            if process_unprocessed_only:
                processed = {
                    row.id for row in self.db.query(File.id).filter(
                        File.id.in_(targets), File.is_processed.is_(True)
                    )
                }
                targets = [file_id for file_id in targets if file_id not in processed]
        else:
            targets = [f.id for f in self.list_unprocessed_files()]

        if len(targets) > self.max_batch_size:
            logger.info(f"Batch limited to {self.max_batch_size} of {len(targets)} files")
            targets = targets[:self.max_batch_size]

        logger.info(f"Starting batch processing of {len(targets)} files")
        result = reduce(
            lambda acc, file_id: acc.record(self.process_file(file_id, options)),
            targets,
            BatchProcessingResult()
        )
        logger.info(result.message)
        return result

    def get_processing_statistics(self) -> ProcessingStatistics:
        return self.document_store.get_processing_statistics()
