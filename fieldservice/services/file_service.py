"""Uploaded file registry"""

from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple
import logging
import shutil
import uuid

from sqlalchemy import desc
from sqlalchemy.orm import Session

from fieldservice.config import settings
from fieldservice.exceptions import NotFoundException, ValidationException
from fieldservice.models.file import File
from fieldservice.rag.document_store import DocumentStore
from fieldservice.services.file_validation import get_file_size_limit, validate_file

logger = logging.getLogger(__name__)


def _stream_size(stream: BinaryIO) -> int:
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


class FileService:
    """Stores uploaded bytes on disk and tracks them as File rows"""

    def __init__(self, db: Session, document_store: DocumentStore, upload_dir: Optional[str] = None):
        self.db = db
        self.document_store = document_store
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def register_upload(
        self,
        filename: str,
        mime_type: str,
        stream: BinaryIO,
        uploaded_by: Optional[str] = None
    ) -> Tuple[File, List[str]]:
        """
        Validate and store an uploaded file

        Args:
            filename: Client file name
            mime_type: Declared content type
            stream: File object positioned anywhere
            uploaded_by: Uploading user id

        Returns:
            (File, validation warnings)

        Raises:
            ValidationException: If the file is rejected
        """
        filename = Path(filename or "").name
        if not filename:
            raise ValidationException("File name is required")

        size = _stream_size(stream)
        result = validate_file(filename, size, mime_type, max_file_size=get_file_size_limit(mime_type))
        if not result.is_valid:
            logger.info(f"Rejected upload {filename}: {result.error}")
            raise ValidationException(result.error)

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"{uuid.uuid4().hex}_{filename}"
        target = self.upload_dir / stored_name
        with open(target, "wb") as buffer:
            shutil.copyfileobj(stream, buffer)
        logger.info(f"Saved uploaded file: {stored_name}")

        file = File(
            filename=filename,
            file_path=str(target),
            mime_type=mime_type,
            file_size=size,
            uploaded_by=uploaded_by,
            is_processed=False
        )
        self.db.add(file)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            target.unlink(missing_ok=True)
            raise
        self.db.refresh(file)

        logger.info(f"Created file record {file.id} for {filename}")
        return file, result.warnings

    def list_files(self, processed: Optional[bool] = None) -> List[File]:
        query = self.db.query(File)
        if processed is not None:
            query = query.filter(File.is_processed.is_(processed))
        return query.order_by(desc(File.created_at)).all()

    def get_file(self, file_id: str) -> File:
        file = self.db.get(File, file_id)
        if not file:
            raise NotFoundException(f"File {file_id} not found")
        return file

    def delete_file(self, file_id: str) -> int:
        """
        Delete a file, its chunks, its vectors and its stored bytes

        Returns:
            Number of chunks deleted
        """
        file = self.get_file(file_id)
        file_path = file.file_path

        chunks_deleted = self.document_store.delete_file_chunks(file_id, commit=False)
        self.db.delete(file)
        self.db.commit()

        if file_path:
            try:
                Path(file_path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove stored file {file_path}: {e}")

        logger.info(f"Deleted file {file_id} with {chunks_deleted} chunks")
        return chunks_deleted
