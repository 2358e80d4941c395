"""Pytest configuration and fixtures"""

import os
import tempfile

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SEARCH_ANALYTICS_RETENTION_DAYS"] = "0"
os.environ["RAG_ENABLE_CACHE"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="fieldservice-uploads-")

import pytest
from fastapi.testclient import TestClient
from qdrant_client import QdrantClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fieldservice.main import app
from fieldservice.database.base import Base
from fieldservice.database.session import get_db
from fieldservice.api.deps import get_embeddings_service, get_vector_store
from fieldservice.exceptions import EmbeddingException
from fieldservice.models.file import File
from fieldservice.rag.document_store import DocumentStore
from fieldservice.rag.vector_store import VectorStore
from fieldservice.security.auth import create_access_token

# Test database URL
TEST_DATABASE_URL = "sqlite:///./test.db"

# Create test engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Unit vectors; cosine(QUERY, CLOSE) = 0.95 and cosine(QUERY, FAR) = 0.5
QUERY_VECTOR = [1.0, 0.0, 0.0]
CLOSE_VECTOR = [0.95, 0.31225, 0.0]
FAR_VECTOR = [0.5, 0.8660254, 0.0]
DEFAULT_VECTOR = [0.0, 0.0, 1.0]


class FakeEmbeddings:
    """
    Deterministic embeddings keyed on substrings of the text.

    Texts containing a key of ``vectors`` get that vector, texts containing
    any string in ``fail_on`` raise EmbeddingException.
    """

    def __init__(self, vectors=None):
        self.vectors = dict(vectors or {})
        self.fail_on = set()
        self.calls = []

    def _vector(self, text):
        for trigger in self.fail_on:
            if trigger in text:
                raise EmbeddingException(f"Embedding service unavailable for '{trigger}'")
        for key, vector in self.vectors.items():
            if key in text:
                return list(vector)
        return list(DEFAULT_VECTOR)

    def generate_embedding(self, text):
        self.calls.append(text)
        return self._vector(text)

    def generate_embeddings_batch(self, texts):
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]


@pytest.fixture(scope="function")
def db():
    """Database session fixture"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def vector_store():
    """Vector store backed by an in-memory Qdrant"""
    return VectorStore(
        client=QdrantClient(":memory:"),
        collection_name="test_chunks",
        vector_size=3
    )


@pytest.fixture(scope="function")
def embeddings():
    return FakeEmbeddings({
        "pump": QUERY_VECTOR,
        "pressure": CLOSE_VECTOR,
        "valve": FAR_VECTOR,
    })


@pytest.fixture(scope="function")
def document_store(db, vector_store):
    return DocumentStore(db, vector_store)


@pytest.fixture(scope="function")
def make_file(db, tmp_path):
    """Create a File row, writing its bytes to disk when content is given"""
    def _make_file(filename="manual.txt", mime_type="text/plain", content=None, **fields):
        file_path = None
        if content is not None:
            file_path = tmp_path / filename
            data = content.encode("utf-8") if isinstance(content, str) else content
            file_path.write_bytes(data)
            fields.setdefault("file_size", len(data))

        record = File(
            filename=filename,
            file_path=str(file_path) if file_path else None,
            mime_type=mime_type,
            **fields
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _make_file


def make_auth_headers(user_id, role):
    token = create_access_token({"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return make_auth_headers("tech-1", "technician")


@pytest.fixture
def other_headers():
    return make_auth_headers("tech-2", "technician")


@pytest.fixture
def admin_headers():
    return make_auth_headers("admin-1", "admin")


@pytest.fixture(scope="function")
def client(db, vector_store, embeddings):
    """Test client fixture"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_vector_store] = lambda: vector_store
    app.dependency_overrides[get_embeddings_service] = lambda: embeddings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
