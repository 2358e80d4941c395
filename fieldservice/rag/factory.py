"""Factory for embedding providers"""

import logging
from typing import Any, Optional
from fieldservice.rag.config import RAGConfig, rag_config

logger = logging.getLogger(__name__)


class AIServiceFactory:
    """Builds the embeddings service selected by AI_PROVIDER, once per process"""

    _embeddings_service = None

    @classmethod
    def get_embeddings_service(cls, config: Optional[RAGConfig] = None) -> Any:
        """Get embeddings service based on AI_PROVIDER"""
        if cls._embeddings_service is None:
            config = config or rag_config
            provider = config.ai_provider.lower()

            if provider == "gemini":
                logger.info("Loading Gemini embeddings service...")
                from fieldservice.rag.embeddings_gemini import GeminiEmbeddingsService
                cls._embeddings_service = GeminiEmbeddingsService(config)
            elif provider == "openai":
                logger.info("Loading OpenAI embeddings service...")
                from fieldservice.rag.embeddings import EmbeddingsService
                cls._embeddings_service = EmbeddingsService(config)
            else:
                raise ValueError(f"Unknown AI_PROVIDER: {config.ai_provider}")

            logger.info(f"Embeddings provider: {provider.upper()}")

        return cls._embeddings_service

    @classmethod
    def reset(cls):
        """Drop the cached service (configuration changed)"""
        cls._embeddings_service = None


def get_embeddings_service():
    """Get the configured embeddings service"""
    return AIServiceFactory.get_embeddings_service()
