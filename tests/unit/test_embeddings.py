"""Test embedding services and provider selection"""

from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from fieldservice.exceptions import EmbeddingException, UpstreamException
from fieldservice.rag.config import rag_config
from fieldservice.rag.embeddings import EmbeddingsService
from fieldservice.rag.embeddings_gemini import GeminiEmbeddingsService
from fieldservice.rag.factory import AIServiceFactory

NO_CACHE = replace(rag_config, enable_cache=False, openai_api_key="test-key", google_api_key="test-key")


def fake_response(*vectors):
    return SimpleNamespace(data=[SimpleNamespace(embedding=list(v)) for v in vectors])


@pytest.fixture(autouse=True)
def reset_factory():
    AIServiceFactory.reset()
    yield
    AIServiceFactory.reset()


def test_generate_embedding():
    client = Mock()
    client.embeddings.create.return_value = fake_response([0.1, 0.2])
    service = EmbeddingsService(NO_CACHE, client=client)

    assert service.generate_embedding("pump") == [0.1, 0.2]
    client.embeddings.create.assert_called_once_with(
        model=NO_CACHE.embedding_model, input="pump", encoding_format="float"
    )


def test_generate_embeddings_batch_keeps_order():
    client = Mock()
    client.embeddings.create.return_value = fake_response([1.0], [2.0], [3.0])
    service = EmbeddingsService(NO_CACHE, client=client)

    assert service.generate_embeddings_batch(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]
    assert service.generate_embeddings_batch([]) == []
    assert client.embeddings.create.call_count == 1


def test_provider_errors_become_embedding_exceptions():
    client = Mock()
    client.embeddings.create.side_effect = RuntimeError("connection reset")
    service = EmbeddingsService(NO_CACHE, client=client)

    with pytest.raises(EmbeddingException) as exc_info:
        service.generate_embeddings_batch(["a"])
    assert isinstance(exc_info.value, UpstreamException)

    with pytest.raises(EmbeddingException):
        service.generate_embedding("a")


def test_factory_builds_openai_service_once():
    config = replace(NO_CACHE, ai_provider="openai")

    service = AIServiceFactory.get_embeddings_service(config)

    assert isinstance(service, EmbeddingsService)
    assert AIServiceFactory.get_embeddings_service(config) is service


def test_factory_builds_gemini_service():
    config = replace(NO_CACHE, ai_provider="Gemini", gemini_embedding_model="text-embedding-004")

    service = AIServiceFactory.get_embeddings_service(config)

    assert isinstance(service, GeminiEmbeddingsService)
    assert service.model_name == "models/text-embedding-004"


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError):
        AIServiceFactory.get_embeddings_service(replace(NO_CACHE, ai_provider="cohere"))
