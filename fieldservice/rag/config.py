"""RAG system configuration"""

from fieldservice.config import settings
from dataclasses import dataclass


@dataclass
class RAGConfig:
    """Configuration for RAG system"""

    # Embedding provider selection
    ai_provider: str = settings.AI_PROVIDER  # "openai" or "gemini"

    # OpenAI Settings
    openai_api_key: str = settings.OPENAI_API_KEY
    embedding_model: str = settings.OPENAI_EMBEDDING_MODEL

    # Gemini Settings
    google_api_key: str = settings.GOOGLE_API_KEY
    gemini_embedding_model: str = settings.GEMINI_EMBEDDING_MODEL

    # Qdrant Settings
    qdrant_url: str = settings.QDRANT_URL
    qdrant_api_key: str = settings.QDRANT_API_KEY
    qdrant_collection: str = settings.QDRANT_COLLECTION
    # Vector size depends on embedding model:
    # - OpenAI text-embedding-3-small: 1536
    # - Gemini text-embedding-004: 768
    vector_size: int = 768 if settings.AI_PROVIDER == "gemini" else 1536

    # Chunking
    chunk_size: int = settings.RAG_CHUNK_SIZE
    chunk_overlap: int = settings.RAG_CHUNK_OVERLAP
    max_chunks: int = settings.RAG_MAX_CHUNKS
    max_batch_size: int = settings.RAG_MAX_BATCH_SIZE

    # Retrieval
    match_threshold: float = settings.RAG_MATCH_THRESHOLD
    match_count: int = settings.RAG_MATCH_COUNT

    # Redis Cache
    enable_cache: bool = settings.RAG_ENABLE_CACHE
    redis_url: str = settings.REDIS_URL
    cache_ttl: int = 3600  # 1 hour


# Global RAG config instance
rag_config = RAGConfig()
