"""OpenAI embeddings service"""

from typing import List, Optional
from openai import OpenAI
import redis
import json
import hashlib
import logging

from fieldservice.exceptions import EmbeddingException
from fieldservice.rag.config import RAGConfig, rag_config

logger = logging.getLogger(__name__)

# Inputs per embeddings request
BATCH_SIZE = 100


class EmbeddingCache:
    """Redis cache for embeddings, keyed by provider and text hash"""

    def __init__(self, prefix: str, config: RAGConfig = rag_config):
        self.prefix = prefix
        self.ttl = config.cache_ttl
        self.enabled = config.enable_cache
        self.redis_client = None
        if self.enabled:
            try:
                self.redis_client = redis.from_url(
                    config.redis_url,
                    decode_responses=False  # Store bytes for embeddings
                )
                logger.info("Redis cache enabled for embeddings")
            except Exception as e:
                logger.warning(f"Failed to connect to Redis cache: {e}")
                self.enabled = False

    def _key(self, text: str) -> str:
        return f"{self.prefix}:{hashlib.md5(text.encode()).hexdigest()}"

    def get(self, text: str) -> Optional[List[float]]:
        """Get embedding from cache"""
        if not self.enabled:
            return None

        try:
            cached = self.redis_client.get(self._key(text))
            if cached:
                logger.debug("Cache hit for embedding")
                return json.loads(cached)
        except Exception as e:
            logger.warning(f"Cache retrieval error: {e}")

        return None

    def set(self, text: str, embedding: List[float]):
        """Save embedding to cache"""
        if not self.enabled:
            return

        try:
            self.redis_client.setex(self._key(text), self.ttl, json.dumps(embedding))
        except Exception as e:
            logger.warning(f"Cache save error: {e}")


class EmbeddingsService:
    """Service for generating embeddings using OpenAI"""

    def __init__(self, config: RAGConfig = rag_config, client: Optional[OpenAI] = None):
        self.client = client or OpenAI(api_key=config.openai_api_key)
        self.model = config.embedding_model
        self.cache = EmbeddingCache("emb:openai", config)

    def generate_embedding(self, text: str) -> List[float]:
        """
        Generate embedding for a single text

        Args:
            text: Text to embed

        Returns:
            List of floats representing the embedding vector
        """
        cached = self.cache.get(text)
        if cached:
            return cached

        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text,
                encoding_format="float"
            )
        except Exception as e:
            logger.error(f"Error generating embedding: {e}")
            raise EmbeddingException(f"Failed to generate embedding: {e}") from e

        embedding = response.data[0].embedding
        self.cache.set(text, embedding)

        logger.debug(f"Generated embedding for text of length {len(text)}")
        return embedding

    def generate_embeddings_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts in batch

        Args:
            texts: List of texts to embed

        Returns:
            List of embedding vectors, in input order
        """
        if not texts:
            return []

        embeddings: List[Optional[List[float]]] = [self.cache.get(text) for text in texts]
        missing = [i for i, embedding in enumerate(embeddings) if embedding is None]

        try:
            for batch_start in range(0, len(missing), BATCH_SIZE):
                indices = missing[batch_start:batch_start + BATCH_SIZE]
                response = self.client.embeddings.create(
                    model=self.model,
                    input=[texts[i] for i in indices],
                    encoding_format="float"
                )
                for i, item in zip(indices, response.data):
                    embeddings[i] = item.embedding
                    self.cache.set(texts[i], item.embedding)
        except Exception as e:
            logger.error(f"Error generating batch embeddings: {e}")
            raise EmbeddingException(f"Failed to generate embeddings: {e}") from e

        logger.info(f"Generated {len(missing)} embeddings in batch (cached: {len(texts) - len(missing)})")
        return embeddings
