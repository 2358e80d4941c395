"""Google Gemini embeddings service"""

from typing import List, Optional
import google.generativeai as genai
import logging

from fieldservice.exceptions import EmbeddingException
from fieldservice.rag.config import RAGConfig, rag_config
from fieldservice.rag.embeddings import EmbeddingCache

logger = logging.getLogger(__name__)

# Gemini accepts at most 100 contents per call
BATCH_SIZE = 100


class GeminiEmbeddingsService:
    """Service for generating embeddings using Google Gemini"""

    def __init__(self, config: RAGConfig = rag_config):
        genai.configure(api_key=config.google_api_key)

        # Ensure embedding model has "models/" prefix
        model_name = config.gemini_embedding_model
        if not model_name.startswith("models/"):
            model_name = f"models/{model_name}"
        self.model_name = model_name

        logger.info(f"Initializing Gemini embeddings with model: {self.model_name}")
        self.cache = EmbeddingCache("emb:gemini", config)

    def generate_embedding(self, text: str) -> List[float]:
        """
        Generate a query embedding using Gemini

        Args:
            text: Text to embed

        Returns:
            List of floats representing the embedding vector
        """
        cached = self.cache.get(text)
        if cached:
            return cached

        try:
            result = genai.embed_content(
                model=self.model_name,
                content=text,
                task_type="retrieval_query"
            )
        except Exception as e:
            logger.error(f"Error generating Gemini embedding: {e}")
            raise EmbeddingException(f"Failed to generate embedding: {e}") from e

        embedding = result['embedding']
        self.cache.set(text, embedding)

        logger.debug(f"Generated Gemini embedding for text of length {len(text)}")
        return embedding

    def generate_embeddings_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate document embeddings for multiple texts

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
                batch_texts = [texts[i] for i in indices]

                # Single API call for the batch
                result = genai.embed_content(
                    model=self.model_name,
                    content=batch_texts,
                    task_type="retrieval_document"
                )
                batch_embeddings = result['embedding'] if isinstance(result['embedding'][0], list) else [result['embedding']]

                for i, embedding in zip(indices, batch_embeddings):
                    embeddings[i] = embedding
                    self.cache.set(texts[i], embedding)

                logger.info(f"Batch {batch_start // BATCH_SIZE + 1}: Generated {len(batch_embeddings)} embeddings")
        except Exception as e:
            logger.error(f"Error generating batch Gemini embeddings: {e}")
            raise EmbeddingException(f"Failed to generate embeddings: {e}") from e

        logger.info(f"Total: Generated {len(embeddings)} embeddings (new: {len(missing)}, cached: {len(texts) - len(missing)})")
        return embeddings
