"""Test semantic retrieval"""

from unittest.mock import Mock

import pytest

from fieldservice.exceptions import ValidationException
from fieldservice.rag.chunker import TextChunk
from fieldservice.rag.config import rag_config
from fieldservice.rag.retriever import Retriever
from fieldservice.schemas.document import ChunkMetadata


def build_chunks(*texts):
    return [
        TextChunk(
            content=text,
            chunk_index=i,
            metadata=ChunkMetadata(chunk_index=i, word_count=len(text.split()), length=len(text))
        )
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def store_texts(make_file, document_store, embeddings):
    """Store texts as chunks of a new processed file"""
    def _store(filename, *texts):
        record = make_file(filename=filename)
        chunks = build_chunks(*texts)
        vectors = embeddings.generate_embeddings_batch([c.content for c in chunks])
        document_store.store_chunks(record, chunks, vectors)
        return record
    return _store


@pytest.fixture
def retriever(embeddings, document_store):
    return Retriever(embeddings, document_store)


@pytest.mark.parametrize("query", ["", "   ", "\n\t"])
def test_blank_query_rejected_before_any_call(query):
    embeddings = Mock()
    document_store = Mock()
    retriever = Retriever(embeddings, document_store)

    with pytest.raises(ValidationException):
        retriever.search(query)

    embeddings.generate_embedding.assert_not_called()
    document_store.similarity_search.assert_not_called()


@pytest.mark.parametrize("threshold,count", [(-0.1, 10), (1.5, 10), (0.5, 0)])
def test_out_of_range_options_rejected(retriever, threshold, count):
    with pytest.raises(ValidationException):
        retriever.search("pump", match_threshold=threshold, match_count=count)


def test_defaults_come_from_config(retriever):
    assert retriever.match_threshold == rag_config.match_threshold
    assert retriever.match_count == rag_config.match_count


def test_results_respect_threshold(retriever, store_texts):
    store_texts("manual.txt", "Check the pressure gauge reading.", "Inspect the valve seat for wear.")

    results = retriever.search("pump maintenance", match_threshold=0.78)

    assert len(results) == 1
    assert "pressure" in results[0].content
    assert results[0].similarity == pytest.approx(0.95, abs=1e-3)
    assert results[0].file.filename == "manual.txt"
    assert results[0].metadata.chunk_index == 0


def test_results_sorted_and_limited(retriever, store_texts):
    store_texts("manual.txt", "Inspect the valve seat for wear.", "Check the pressure gauge reading.")

    results = retriever.search("pump maintenance", match_threshold=0.4, match_count=10)
    assert [r.similarity for r in results] == sorted((r.similarity for r in results), reverse=True)
    assert "pressure" in results[0].content
    assert "valve" in results[1].content

    limited = retriever.search("pump maintenance", match_threshold=0.4, match_count=1)
    assert len(limited) == 1
    assert limited[0].id == results[0].id


def test_file_ids_restrict_search(retriever, store_texts):
    first = store_texts("first.txt", "Check the pressure gauge reading.")
    second = store_texts("second.txt", "Replaced the pressure relief line.")

    results = retriever.search("pump", match_threshold=0.5, file_ids=[second.id])

    assert [r.file_id for r in results] == [second.id]
    assert first.id not in {r.file_id for r in results}


def test_no_match_is_empty_result(retriever, store_texts):
    store_texts("manual.txt", "Unrelated text about paperwork.")
    assert retriever.search("pump", match_threshold=0.9) == []


def test_query_is_stripped_before_embedding(embeddings, retriever):
    retriever.search("  pump  ", match_threshold=0.9)
    assert embeddings.calls == ["pump"]
