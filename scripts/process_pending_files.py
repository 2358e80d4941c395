"""
Pending file processing script

Chunks and embeds uploaded files that have not been processed yet
Usage: python scripts/process_pending_files.py [--file-id ID ...] [--reprocess]
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fieldservice.database.base import Base
from fieldservice.database.session import SessionLocal, engine
from fieldservice.rag.document_store import DocumentStore
from fieldservice.rag.factory import get_embeddings_service
from fieldservice.rag.vector_store import VectorStore
from fieldservice.services.file_processor import FileProcessor
from fieldservice.utils.logger import setup_logging
from fieldservice import models  # noqa: F401
import logging

setup_logging()
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Process uploaded files into searchable chunks")
    parser.add_argument("--file-id", action="append", dest="file_ids", default=[],
                        help="File to process (repeatable); default: pending files")
    parser.add_argument("--reprocess", action="store_true",
                        help="Rebuild chunks of the given files")
    return parser.parse_args()


def main():
    args = parse_args()

    logger.info("=" * 60)
    logger.info("Processing pending files")
    logger.info("=" * 60)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        processor = FileProcessor(db, DocumentStore(db, VectorStore()), get_embeddings_service())

        if args.reprocess:
            if not args.file_ids:
                logger.error("--reprocess needs at least one --file-id")
                return 1
            results = [processor.reprocess_file(file_id) for file_id in args.file_ids]
            failed = [r for r in results if not r.success]
        else:
            batch = processor.process_batch(file_ids=args.file_ids or None)
            results, failed = batch.results, [r for r in batch.results if not r.success]
            logger.info(batch.message)

        for result in results:
            if result.success:
                logger.info(f"✓ {result.file_id}: {result.chunks_count} chunks")
            else:
                logger.warning(f"✗ {result.file_id}: [{result.error_type}] {result.error}")

        stats = processor.get_processing_statistics()
        logger.info(f"Files processed: {stats.processed_files}/{stats.total_files}, chunks: {stats.total_chunks}")
        return 1 if failed else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
